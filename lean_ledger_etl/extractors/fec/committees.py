"""FEC Committee extractor."""

from typing import Any

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.extractors.base import BaseExtractor
from lean_ledger_etl.models.fec import FECCandidate, FECCommittee
from lean_ledger_etl.models.organizations import TrackedOrganization
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.pagination import iter_records, walk_numbered_pages

# Non-connected, qualified and super PACs
PAC_COMMITTEE_TYPES = ["N", "Q", "O"]

# The /candidates/ endpoint accepts up to 100 candidate_id values per request
PARTY_LOOKUP_BATCH_SIZE = 100


class FECCommitteeExtractor(BaseExtractor):
    """
    Find organizations' PACs and resolve the party of the candidates they fund.
    """

    def __init__(self, api_client: FECAPIClient, recent_cycles: list[int]):
        """
        Initialize the committee extractor.

        Args:
            api_client: FEC API client
            recent_cycles: Cycles that count as "recently active" when
                choosing between name matches
        """
        super().__init__(api_client)
        self.recent_cycles = set(recent_cycles)

    def extract(self, organization: TrackedOrganization, **kwargs: Any) -> list[FECCommittee]:
        committee = self.search_committee(organization)
        return [committee] if committee else []

    def search_committee(self, organization: TrackedOrganization) -> FECCommittee | None:
        """
        Search the organization's PAC by name.

        Each search term is tried in order. Within one term's results, a
        committee whose name contains the term and that filed in a recent
        cycle wins over any other name match.

        Returns:
            The matching committee, or None if no term matched
        """
        logger = get_logger(__name__)

        for term in organization.search_terms:
            response = self.api_client.get(
                "/committees/",
                params={"q": term, "committee_type": PAC_COMMITTEE_TYPES, "per_page": 20},
            )
            committees = self.validate_rows(
                response.get("results") or [], FECCommittee.model_validate, "committee"
            )

            needle = term.upper()
            matches = [c for c in committees if needle in c.name.upper()]
            recent = [c for c in matches if self.recent_cycles.intersection(c.cycles)]

            match = (recent or matches or [None])[0]
            if match is not None:
                logger.info(
                    f"Found committee for {organization.name}: {match.name} ({match.committee_id})"
                )
                return match

        return None

    def batch_fetch_parties(self, candidate_ids: list[str]) -> dict[str, str | None]:
        """
        Resolve party codes for many candidates at once.

        Args:
            candidate_ids: Candidate ids (duplicates ignored)

        Returns:
            Mapping of candidate_id to party code (e.g. 'DEM', 'REP')
        """
        logger = get_logger(__name__)
        unique_ids = list(dict.fromkeys(candidate_ids))
        parties: dict[str, str | None] = {}

        for start in range(0, len(unique_ids), PARTY_LOOKUP_BATCH_SIZE):
            batch = unique_ids[start : start + PARTY_LOOKUP_BATCH_SIZE]
            rows = iter_records(
                walk_numbered_pages(
                    self.api_client,
                    "/candidates/",
                    {"candidate_id": batch, "per_page": 100},
                )
            )
            for candidate in self.validate_rows(rows, FECCandidate.model_validate, "candidate"):
                parties[candidate.candidate_id] = candidate.party

        logger.info(f"Resolved party for {len(parties)}/{len(unique_ids)} candidates")
        return parties
