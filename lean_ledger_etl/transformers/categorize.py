"""
Partisan categorization of organizations.

An organization's candidate contributions are split into a DEM bucket, a REP
bucket and an unattributed bucket. Percentages are computed from the two
attributed buckets only; the unattributed bucket is reported but never part
of the denominator.

Category thresholds (strict):
- support: DEM share > 55%
- avoid:   REP share > 55%
- mixed:   otherwise
Organizations without a committee, or whose committee made no candidate
contributions, are ``none`` and never appear in support/avoid listings.
"""

from collections.abc import Iterable, Mapping

import pandas as pd

from lean_ledger_etl.models.fec import Disbursement
from lean_ledger_etl.models.organizations import TrackedOrganization
from lean_ledger_etl.models.records import (
    PARTY_A,
    PARTY_B,
    Category,
    OrganizationRecord,
    PartisanSplit,
)

CATEGORY_THRESHOLD = 55.0

LISTED_CATEGORIES = (Category.SUPPORT, Category.MIXED, Category.AVOID)


def round_money(amount: float) -> float:
    return round(amount, 2)


def round_percent(percent: float) -> float:
    return round(percent, 1)


def category_for(pct_a: float, pct_b: float) -> Category:
    if pct_a > CATEGORY_THRESHOLD:
        return Category.SUPPORT
    if pct_b > CATEGORY_THRESHOLD:
        return Category.AVOID
    return Category.MIXED


def categorize(total_a: float, total_b: float) -> tuple[float, float, Category]:
    """
    Two-party split of ``total_a``/``total_b`` and its category.

    The category is decided on the exact split; only the returned
    percentages are rounded to one decimal. Both are 0 when nothing was
    attributed.

    >>> categorize(600, 400)
    (60.0, 40.0, <Category.SUPPORT: 'support'>)
    """
    attributed = total_a + total_b
    if attributed <= 0:
        return 0.0, 0.0, Category.MIXED

    raw_a = total_a * 100 / attributed
    raw_b = total_b * 100 / attributed
    return round_percent(raw_a), round_percent(raw_b), category_for(raw_a, raw_b)


def party_from_recipient_name(recipient_name: str | None) -> str | None:
    """Fallback party marker in a recipient name, e.g. "SMITH FOR SENATE (D)"."""
    if not recipient_name:
        return None
    name = recipient_name.upper()
    if "(D)" in name or "DEM" in name:
        return PARTY_A
    if "(R)" in name or "REP" in name:
        return PARTY_B
    return None


def resolve_party(disbursement: Disbursement, party_map: Mapping[str, str | None]) -> str | None:
    party = None
    if disbursement.candidate_id:
        party = party_map.get(disbursement.candidate_id)
    return party or party_from_recipient_name(disbursement.recipient_name)


def split_disbursements(
    disbursements: Iterable[Disbursement], party_map: Mapping[str, str | None]
) -> tuple[PartisanSplit, int]:
    """
    Sum positive disbursements into DEM/REP/unattributed buckets.

    Returns:
        The split and the number of disbursements counted
    """
    totals = {PARTY_A: 0.0, PARTY_B: 0.0}
    other = 0.0
    counted = 0

    for disbursement in disbursements:
        if disbursement.amount <= 0:
            continue
        counted += 1
        party = resolve_party(disbursement, party_map)
        if party in totals:
            totals[party] += disbursement.amount
        else:
            other += disbursement.amount

    pct_a, pct_b, category = categorize(totals[PARTY_A], totals[PARTY_B])
    split = PartisanSplit(
        total_democrat=totals[PARTY_A],
        total_republican=totals[PARTY_B],
        total_other=other,
        percent_democrat=pct_a,
        percent_republican=pct_b,
        category=category,
    )
    return split, counted


def categorize_organization(
    organization: TrackedOrganization,
    disbursements: list[Disbursement],
    party_map: Mapping[str, str | None],
    committee_ids: list[str],
) -> OrganizationRecord:
    split, counted = split_disbursements(disbursements, party_map)
    if counted == 0:
        return uncategorized_organization(organization, committee_ids)

    return OrganizationRecord(
        name=organization.name,
        industry=organization.industry,
        total_democrat=round_money(split.total_democrat),
        total_republican=round_money(split.total_republican),
        total_other=round_money(split.total_other),
        total_contributions=round_money(split.total_contributions),
        percent_democrat=split.percent_democrat,
        percent_republican=split.percent_republican,
        category=split.category,
        fec_committee_ids=committee_ids,
        has_pac=True,
        rank=organization.rank,
        disbursement_count=counted,
    )


def uncategorized_organization(
    organization: TrackedOrganization, committee_ids: list[str] | None = None
) -> OrganizationRecord:
    """``none`` record: no committee found, or a committee with no candidate contributions."""
    return OrganizationRecord(
        name=organization.name,
        industry=organization.industry,
        category=Category.NONE,
        fec_committee_ids=committee_ids or [],
        has_pac=bool(committee_ids),
        rank=organization.rank,
    )


def aggregate_stats(records: Iterable[OrganizationRecord]) -> dict:
    """
    Count listed organizations by category, overall and per industry.

    ``none`` records are excluded.

    Returns:
        ``{"total", "support", "mixed", "avoid", "by_industry": {industry: {...}}}``
    """
    listed = [r for r in records if r.category in LISTED_CATEGORIES]
    categories = [c.value for c in LISTED_CATEGORIES]

    stats: dict = {"total": len(listed), **dict.fromkeys(categories, 0), "by_industry": {}}
    if not listed:
        return stats

    df = pd.DataFrame([{"industry": r.industry, "category": r.category} for r in listed])

    overall = df["category"].value_counts()
    for category in categories:
        stats[category] = int(overall.get(category, 0))

    by_industry = (
        df.groupby(["industry", "category"]).size().unstack(fill_value=0).reindex(
            columns=categories, fill_value=0
        )
    )
    for industry, row in by_industry.iterrows():
        counts = {category: int(row[category]) for category in categories}
        stats["by_industry"][industry] = {"total": sum(counts.values()), **counts}

    return stats


def sort_organizations(records: Iterable[OrganizationRecord]) -> list[OrganizationRecord]:
    """
    Listing order: support (highest DEM % first), mixed (alphabetical),
    avoid (highest REP % first). ``none`` records are dropped.
    """
    order = {category.value: index for index, category in enumerate(LISTED_CATEGORIES)}

    def sort_key(record: OrganizationRecord):
        if record.category == Category.SUPPORT:
            within = (-record.percent_democrat, "")
        elif record.category == Category.AVOID:
            within = (-record.percent_republican, "")
        else:
            within = (0.0, record.name.lower())
        return order[record.category], within

    return sorted((r for r in records if r.category in LISTED_CATEGORIES), key=sort_key)
