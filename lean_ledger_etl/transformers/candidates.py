"""Build publishable candidate records from FEC lookups and donor aggregates."""

from lean_ledger_etl.models.fec import CandidateTotals, FECCandidate, FECCommittee
from lean_ledger_etl.models.jurisdictions import AT_LARGE_DISTRICT
from lean_ledger_etl.models.records import CandidateRecord, DonorAggregate, DonorType
from lean_ledger_etl.transformers.categorize import round_money
from lean_ledger_etl.transformers.donors import DonorAggregator
from lean_ledger_etl.utils.names import comparison_key, format_candidate_name

OFFICE_HOUSE = "H"
OFFICE_SENATE = "S"
OFFICE_PRESIDENT = "P"

INCUMBENT = "I"


def house_district(candidate: FECCandidate) -> str | None:
    """District code for House candidates; None for at-large seats and other offices."""
    if candidate.office != OFFICE_HOUSE:
        return None
    if not candidate.district or candidate.district == AT_LARGE_DISTRICT:
        return None
    return candidate.district


def office_label(candidate: FECCandidate) -> str:
    if candidate.office == OFFICE_SENATE:
        return "US Senate"
    if candidate.office == OFFICE_PRESIDENT:
        return "President"
    if candidate.office == OFFICE_HOUSE:
        district = house_district(candidate) or "At Large"
        return f"US House {candidate.state}-{district}"
    return candidate.office or "Unknown"


def _base_fields(candidate: FECCandidate, partition: str) -> dict:
    return {
        "candidate_id": candidate.candidate_id,
        "name": format_candidate_name(candidate.name),
        "party": candidate.party or "UNK",
        "office": office_label(candidate),
        "office_code": candidate.office,
        "district": house_district(candidate),
        "state": candidate.state,
        "incumbent_challenger": candidate.incumbent_challenge,
        "is_incumbent": candidate.incumbent_challenge == INCUMBENT,
        "partition": partition,
    }


def empty_candidate_record(
    candidate: FECCandidate, partition: str, committee: FECCommittee | None = None
) -> CandidateRecord:
    """Zero-total record for a candidate without a committee or without data."""
    return CandidateRecord(
        **_base_fields(candidate, partition),
        committee_id=committee.committee_id if committee else None,
    )


def build_candidate_record(
    candidate: FECCandidate,
    partition: str,
    committee: FECCommittee,
    aggregator: DonorAggregator,
    totals: CandidateTotals | None = None,
    top_donor_limit: int = 50,
) -> CandidateRecord:
    """
    Assemble a candidate record.

    Reported receipts from the candidate's totals override the sum of
    itemized donors when present.
    """
    from_pacs = aggregator.total_for(DonorType.ORGANIZATION)
    from_individuals = aggregator.total_for(DonorType.INDIVIDUAL)
    from_other = aggregator.total_for(DonorType.OTHER)

    total_raised = from_pacs + from_individuals + from_other
    if totals is not None and totals.receipts:
        total_raised = totals.receipts

    donors = aggregator.donors()
    top_donors = [_rounded(donor) for donor in donors[:top_donor_limit]]

    return CandidateRecord(
        **_base_fields(candidate, partition),
        total_raised=round_money(total_raised),
        total_from_pacs=round_money(from_pacs),
        total_from_individuals=round_money(from_individuals),
        donor_count=len(donors),
        top_donors=top_donors,
        committee_id=committee.committee_id,
    )


def _rounded(donor: DonorAggregate) -> DonorAggregate:
    return donor.model_copy(update={"total_amount": round_money(donor.total_amount)})


def dedupe_candidates(records: list[CandidateRecord]) -> list[CandidateRecord]:
    """
    Collapse records that name the same person within one partition.

    Records are grouped by the comparison form of their display name; the
    record with the highest ``total_raised`` is kept (first seen on ties)
    at the position of the group's first appearance.
    """
    best: dict[str, int] = {}
    kept: list[CandidateRecord] = []

    for record in records:
        key = comparison_key(record.name)
        if key in ("", "unknown"):
            kept.append(record)
            continue

        index = best.get(key)
        if index is None:
            best[key] = len(kept)
            kept.append(record)
        elif record.total_raised > kept[index].total_raised:
            kept[index] = record

    return kept
