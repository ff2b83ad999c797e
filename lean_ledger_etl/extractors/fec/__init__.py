"""FEC extractors for campaign finance data."""

from lean_ledger_etl.extractors.fec.candidates import FECCandidateExtractor
from lean_ledger_etl.extractors.fec.committees import FECCommitteeExtractor
from lean_ledger_etl.extractors.fec.schedule_a import FECScheduleAExtractor
from lean_ledger_etl.extractors.fec.schedule_b import FECScheduleBExtractor

__all__ = [
    "FECCandidateExtractor",
    "FECCommitteeExtractor",
    "FECScheduleAExtractor",
    "FECScheduleBExtractor",
]
