"""FEC Schedule A (contributions received) extractor."""

from typing import Any

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.extractors.base import BaseExtractor
from lean_ledger_etl.models.fec import Contribution, parse_contribution
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.pagination import iter_records, merge_unique, walk_cursor_pages


class FECScheduleAExtractor(BaseExtractor):
    """
    Extract the largest itemized contributions received by a committee.

    Each cycle is walked separately (largest amounts first) with a page cap,
    and the union across cycles is capped at ``max_records``.
    """

    def __init__(
        self,
        api_client: FECAPIClient,
        cycles: list[int],
        max_pages: int = 5,
        max_records: int = 500,
    ):
        super().__init__(api_client)
        self.cycles = cycles
        self.max_pages = max_pages
        self.max_records = max_records

    def extract(self, committee_id: str, **kwargs: Any) -> list[Contribution]:
        """
        Extract contributions to one committee.

        Args:
            committee_id: Recipient committee id

        Returns:
            Validated contributions, deduplicated by sub_id
        """
        logger = get_logger(__name__)

        per_cycle = (
            iter_records(
                walk_cursor_pages(
                    self.api_client,
                    "/schedules/schedule_a/",
                    {
                        "committee_id": committee_id,
                        "two_year_transaction_period": cycle,
                        "per_page": 100,
                        "sort": "-contribution_receipt_amount",
                    },
                    max_pages=self.max_pages,
                )
            )
            for cycle in self.cycles
        )
        rows = merge_unique(per_cycle, key=lambda row: row.get("sub_id"), limit=self.max_records)
        contributions = self.validate_rows(rows, parse_contribution, "contribution")

        logger.info(f"Retrieved {len(contributions)} contribution records for {committee_id}")
        return contributions
