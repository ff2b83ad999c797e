"""FEC Candidate extractor."""

from typing import Any

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.extractors.base import BaseExtractor
from lean_ledger_etl.models.fec import CandidateTotals, FECCandidate, FECCommittee
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.pagination import iter_records, merge_unique, walk_numbered_pages


class FECCandidateExtractor(BaseExtractor):
    """
    Extract candidates from the FEC API.

    Searches active candidates by office, state and district across the
    configured election cycles, and looks up each candidate's principal
    committee and reported totals.
    """

    def __init__(self, api_client: FECAPIClient, cycles: list[int], max_pages: int | None = None):
        """
        Initialize the candidate extractor.

        Args:
            api_client: FEC API client
            cycles: Election cycles to search, in priority order
            max_pages: Page cap per search (None for all pages)
        """
        super().__init__(api_client)
        self.cycles = cycles
        self.max_pages = max_pages

    def extract(
        self,
        office: str,
        state: str | None = None,
        district: str | None = None,
        **kwargs: Any,
    ) -> list[FECCandidate]:
        """
        Search active candidates for one office.

        Args:
            office: 'H' (House), 'S' (Senate) or 'P' (President)
            state: Two-letter jurisdiction code (None for presidential)
            district: Zero-padded House district

        Returns:
            Candidates deduplicated by candidate_id, first-seen order
        """
        logger = get_logger(__name__)

        base_params: dict[str, Any] = {
            "office": office,
            "is_active_candidate": "true",
            "per_page": 100,
            "sort": "name",
        }
        if state:
            base_params["state"] = state
        if district:
            base_params["district"] = district

        searches = (
            iter_records(
                walk_numbered_pages(
                    self.api_client,
                    "/candidates/search/",
                    {**base_params, "cycle": cycle},
                    max_pages=self.max_pages,
                )
            )
            for cycle in self.cycles
        )
        rows = merge_unique(searches, key=lambda row: row.get("candidate_id"))
        candidates = self.validate_rows(rows, FECCandidate.model_validate, "candidate")

        where = "-".join(part for part in (state, district) if part) or "national"
        logger.info(f"Found {len(candidates)} {office} candidates ({where})")
        return candidates

    def get_principal_committee(self, candidate_id: str) -> FECCommittee | None:
        """Most recent principal campaign committee, if the candidate has one."""
        response = self.api_client.get(
            f"/candidate/{candidate_id}/committees/",
            params={"designation": "P", "per_page": 5},
        )
        committees = self.validate_rows(
            response.get("results") or [], FECCommittee.model_validate, "committee"
        )
        return committees[0] if committees else None

    def get_totals(self, candidate_id: str) -> CandidateTotals | None:
        """Financial totals for the candidate's most recent cycle."""
        response = self.api_client.get(
            f"/candidate/{candidate_id}/totals/",
            params={"sort": "-cycle", "per_page": 5},
        )
        totals = self.validate_rows(
            response.get("results") or [], CandidateTotals.model_validate, "totals"
        )
        return totals[0] if totals else None
