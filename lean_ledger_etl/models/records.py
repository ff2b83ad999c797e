"""Aggregated records published to the document store, plus run bookkeeping."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lean_ledger_etl.utils.names import slugify

# Party codes used for the two attributed buckets
PARTY_A = "DEM"
PARTY_B = "REP"


class DonorType(str, Enum):
    """Counterparty classification of a contribution."""

    # Wire value kept as "pac" for client compatibility
    ORGANIZATION = "pac"
    INDIVIDUAL = "individual"
    OTHER = "other"


class Category(str, Enum):
    SUPPORT = "support"
    MIXED = "mixed"
    AVOID = "avoid"
    NONE = "none"


class EntityStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    ERROR = "error"


class JurisdictionState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    RATE_LIMITED = "rate_limited"


class WireModel(BaseModel):
    """Base for records serialized with the client's camelCase field names."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class DonorAggregate(WireModel):
    """Running totals for one ``(type, normalized name)`` donor key."""

    name: str
    type: DonorType
    total_amount: float = Field(default=0.0, ge=0, alias="totalAmount")
    contribution_count: int = Field(default=0, ge=0, alias="contributionCount")
    employer: str | None = None
    state: str | None = None


class PartisanSplit(BaseModel):
    """Two-party split of an organization's candidate contributions."""

    total_democrat: float = 0.0
    total_republican: float = 0.0
    total_other: float = 0.0
    percent_democrat: float = 0.0
    percent_republican: float = 0.0
    category: Category = Category.MIXED

    @property
    def total_contributions(self) -> float:
        # The unattributed bucket is not part of the percentage denominator
        return self.total_democrat + self.total_republican


class OrganizationRecord(WireModel):
    name: str
    industry: str
    total_democrat: float = Field(default=0.0, alias="totalDemocrat")
    total_republican: float = Field(default=0.0, alias="totalRepublican")
    total_other: float = Field(default=0.0, alias="totalOther")
    total_contributions: float = Field(default=0.0, alias="totalContributions")
    percent_democrat: float = Field(default=0.0, alias="percentDemocrat")
    percent_republican: float = Field(default=0.0, alias="percentRepublican")
    category: Category
    fec_committee_ids: list[str] = Field(default_factory=list, alias="fecCommitteeIds")
    has_pac: bool = Field(default=True, alias="hasPac")
    rank: int | None = None
    disbursement_count: int = Field(default=0, alias="disbursementCount")

    @property
    def slug(self) -> str:
        return slugify(self.name)

    def to_document(self) -> dict:
        return {**super().to_document(), "slug": self.slug}


class CandidateRecord(WireModel):
    candidate_id: str | None = Field(default=None, alias="candidateId")
    name: str
    party: str = "UNK"
    office: str
    office_code: str | None = Field(default=None, alias="officeCode")
    district: str | None = None
    state: str | None = None
    incumbent_challenger: str | None = Field(default=None, alias="incumbentChallenger")
    is_incumbent: bool = Field(default=False, alias="isIncumbent")
    total_raised: float = Field(default=0.0, alias="totalRaised")
    total_from_pacs: float = Field(default=0.0, alias="totalFromPacs")
    total_from_individuals: float = Field(default=0.0, alias="totalFromIndividuals")
    donor_count: int = Field(default=0, alias="donorCount")
    top_donors: list[DonorAggregate] = Field(default_factory=list, alias="topDonors")
    committee_id: str | None = Field(default=None, alias="committeeId")
    partition: str | None = None

    @property
    def slug(self) -> str:
        return slugify(self.candidate_id or self.name)

    def to_document(self) -> dict:
        return {**super().to_document(), "slug": self.slug}


class EntityOutcome(BaseModel):
    """Result of processing one organization or candidate."""

    name: str
    status: EntityStatus
    detail: str | None = None


class RunSummary(BaseModel):
    """Counts reported at the end of every run."""

    processed: int = 0
    succeeded: int = 0
    degraded: int = 0
    errored: int = 0
    published: int = 0
    rate_limit_hit: bool = False
    dry_run: bool = False
    errors: list[EntityOutcome] = Field(default_factory=list)

    def record(self, outcome: EntityOutcome) -> None:
        self.processed += 1
        if outcome.status == EntityStatus.OK:
            self.succeeded += 1
        elif outcome.status == EntityStatus.DEGRADED:
            self.degraded += 1
        else:
            self.errored += 1
            self.errors.append(outcome)

    @property
    def exit_code(self) -> int:
        """0 on success (always for dry runs), 1 on entity errors or rate-limit stop."""
        if self.dry_run:
            return 0
        return 1 if self.errored or self.rate_limit_hit else 0

    def log_lines(self) -> list[str]:
        lines = [
            f"Total processed: {self.processed}",
            f"Succeeded: {self.succeeded}",
            f"Degraded (no committee / no data): {self.degraded}",
            f"Errors: {self.errored}",
            f"Published: {self.published}",
        ]
        if self.rate_limit_hit:
            lines.append("Stopped early: FEC API rate limit exhausted")
        lines.extend(f"  {error.name}: {error.detail}" for error in self.errors)
        return lines
