"""Extractors for FEC API data."""

from lean_ledger_etl.extractors.fec import (
    FECCandidateExtractor,
    FECCommitteeExtractor,
    FECScheduleAExtractor,
    FECScheduleBExtractor,
)

__all__ = [
    "FECCandidateExtractor",
    "FECCommitteeExtractor",
    "FECScheduleAExtractor",
    "FECScheduleBExtractor",
]
