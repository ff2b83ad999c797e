"""FEC Schedule B (disbursements) extractor."""

from typing import Any

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.extractors.base import BaseExtractor
from lean_ledger_etl.models.fec import Disbursement
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.pagination import iter_records, merge_unique, walk_cursor_pages


class FECScheduleBExtractor(BaseExtractor):
    """
    Extract a PAC's contributions to candidates from its disbursements.

    Every configured cycle is walked (cursor pair ``last_index`` +
    ``last_disbursement_date``) up to ``max_records`` raw rows per cycle;
    only payments to candidate committees, or described as contributions,
    are kept.
    """

    def __init__(self, api_client: FECAPIClient, cycles: list[int], max_records: int = 10000):
        super().__init__(api_client)
        self.cycles = cycles
        self.max_records = max_records

    def extract(self, committee_id: str, **kwargs: Any) -> list[Disbursement]:
        logger = get_logger(__name__)
        logger.info(f"Fetching disbursements for committee {committee_id}...")

        per_cycle = []
        for cycle in self.cycles:
            rows = iter_records(
                walk_cursor_pages(
                    self.api_client,
                    "/schedules/schedule_b/",
                    {
                        "committee_id": committee_id,
                        "two_year_transaction_period": cycle,
                        "per_page": 100,
                    },
                    max_records=self.max_records,
                )
            )
            disbursements = [
                d
                for d in self.validate_rows(rows, Disbursement.model_validate, "disbursement")
                if d.is_candidate_contribution
            ]
            if disbursements:
                logger.info(f"  {cycle} cycle: {len(disbursements)} candidate contributions")
            per_cycle.append(disbursements)

        merged = merge_unique(per_cycle, key=lambda d: d.sub_id)
        logger.info(f"Total disbursements retrieved: {len(merged)}")
        return merged
