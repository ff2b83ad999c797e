"""Pure reductions from validated FEC records to publishable records."""

from lean_ledger_etl.transformers.candidates import build_candidate_record, dedupe_candidates
from lean_ledger_etl.transformers.categorize import (
    aggregate_stats,
    categorize,
    categorize_organization,
    sort_organizations,
)
from lean_ledger_etl.transformers.donors import DonorAggregator, aggregate_donors

__all__ = [
    # Donors
    "DonorAggregator",
    "aggregate_donors",
    # Organizations
    "categorize",
    "categorize_organization",
    "aggregate_stats",
    "sort_organizations",
    # Candidates
    "build_candidate_record",
    "dedupe_candidates",
]
