"""Validated shapes of FEC API responses."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, field_validator

from lean_ledger_etl.models.records import DonorType

# entity_type codes that mark an organization/committee counterparty
ORGANIZATION_ENTITY_TYPES = frozenset({"COM", "PAC", "ORG"})
INDIVIDUAL_ENTITY_TYPE = "IND"

# recipient_committee_type codes of candidate committees (House, Senate, President)
CANDIDATE_COMMITTEE_TYPES = frozenset({"H", "S", "P"})


def _blank_amount_as_zero(value: Any) -> Any:
    if value is None or value == "":
        return 0.0
    return value


Amount = Annotated[float, BeforeValidator(_blank_amount_as_zero)]


class Pagination(BaseModel):
    pages: int | None = None
    count: int | None = None
    per_page: int | None = None
    page: int | None = None
    last_indexes: dict[str, Any] | None = None

    @property
    def next_cursor(self) -> dict[str, Any] | None:
        """The ``last_indexes`` pair, or None when it is missing or incomplete."""
        if not self.last_indexes:
            return None
        if any(value in (None, "") for value in self.last_indexes.values()):
            return None
        return dict(self.last_indexes)


class _ContributionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    contributor_name: str
    amount: Amount
    employer: str | None = None
    state: str | None = None
    receipt_date: str | None = None
    committee_id: str | None = None
    sub_id: str | None = None


class OrganizationContribution(_ContributionBase):
    kind: Literal[DonorType.ORGANIZATION] = DonorType.ORGANIZATION


class IndividualContribution(_ContributionBase):
    kind: Literal[DonorType.INDIVIDUAL] = DonorType.INDIVIDUAL


class OtherContribution(_ContributionBase):
    kind: Literal[DonorType.OTHER] = DonorType.OTHER


Contribution = Annotated[
    OrganizationContribution | IndividualContribution | OtherContribution,
    Field(discriminator="kind"),
]

_contribution_adapter: TypeAdapter[Contribution] = TypeAdapter(Contribution)


def classify_counterparty(raw: dict[str, Any]) -> DonorType:
    """
    Classify a Schedule A row's counterparty.

    Precedence: a committee-type marker, then an organization entity code,
    then an individual (or absent) entity code, else other.
    """
    entity_type = raw.get("entity_type")
    if raw.get("contributor_committee_type") or entity_type in ORGANIZATION_ENTITY_TYPES:
        return DonorType.ORGANIZATION
    if entity_type == INDIVIDUAL_ENTITY_TYPE or not entity_type:
        return DonorType.INDIVIDUAL
    return DonorType.OTHER


def parse_contribution(raw: dict[str, Any]) -> Contribution:
    """
    Validate a raw Schedule A row into its tagged contribution variant.

    Raises:
        pydantic.ValidationError: If the amount or another field is malformed
    """
    kind = classify_counterparty(raw)

    if kind == DonorType.ORGANIZATION:
        name = raw.get("contributor_name") or raw.get("committee_name") or "Unknown PAC"
    elif kind == DonorType.INDIVIDUAL:
        name = raw.get("contributor_name") or "Unknown Individual"
    else:
        name = raw.get("contributor_name") or "Unknown"

    committee = raw.get("committee") or {}
    sub_id = raw.get("sub_id")

    return _contribution_adapter.validate_python(
        {
            "kind": kind,
            "contributor_name": name,
            "amount": raw.get("contribution_receipt_amount"),
            "employer": raw.get("contributor_employer") or None,
            "state": raw.get("contributor_state") or None,
            "receipt_date": raw.get("contribution_receipt_date"),
            "committee_id": raw.get("committee_id") or committee.get("committee_id"),
            "sub_id": str(sub_id) if sub_id is not None else None,
        }
    )


class Disbursement(BaseModel):
    """Schedule B row: money an organization's committee paid out."""

    model_config = ConfigDict(frozen=True)

    amount: Amount = Field(validation_alias="disbursement_amount")
    recipient_name: str | None = None
    recipient_committee_type: str | None = None
    disbursement_description: str | None = None
    candidate_id: str | None = None
    disbursement_date: str | None = None
    sub_id: str | None = None

    @field_validator("sub_id", mode="before")
    @classmethod
    def _sub_id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    @property
    def is_candidate_contribution(self) -> bool:
        """True for payments to candidate committees or described as contributions."""
        if self.recipient_committee_type in CANDIDATE_COMMITTEE_TYPES:
            return True
        description = (self.disbursement_description or "").upper()
        return "CONTRIBUTION" in description or "CANDIDATE" in description


class FECCandidate(BaseModel):
    candidate_id: str
    name: str | None = None
    party: str | None = None
    office: str | None = None
    state: str | None = None
    district: str | None = None
    incumbent_challenge: str | None = None

    @field_validator("district", mode="before")
    @classmethod
    def _district_as_str(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return f"{int(value):02d}" if str(value).isdigit() else str(value)


class FECCommittee(BaseModel):
    committee_id: str
    name: str = ""
    committee_type: str | None = None
    designation: str | None = None
    cycles: list[int] = Field(default_factory=list)

    @field_validator("cycles", mode="before")
    @classmethod
    def _cycles_default(cls, value: Any) -> Any:
        return value or []


class CandidateTotals(BaseModel):
    candidate_id: str | None = None
    cycle: int | None = None
    receipts: float | None = None
