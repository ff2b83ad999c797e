"""
Candidate Sweep Flow

Walks every jurisdiction (Senate plus each House district), then the
presidential race, building a donor profile for each active candidate.
Candidates are published one partition at a time; after each partition the
progress checkpoint is saved so a run stopped by the FEC rate limit can be
resumed with ``resume=True``.
"""

from pathlib import Path

from prefect import flow

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.clients.firestore import FirestoreClient
from lean_ledger_etl.config import Settings, get_settings
from lean_ledger_etl.exceptions import (
    ConfigurationError,
    LeanLedgerError,
    RateLimitExhaustedError,
)
from lean_ledger_etl.extractors.fec import FECCandidateExtractor, FECScheduleAExtractor
from lean_ledger_etl.loaders.firestore import FirestorePublisher
from lean_ledger_etl.models.fec import FECCandidate
from lean_ledger_etl.models.jurisdictions import (
    PRESIDENTIAL_PARTITION,
    get_all_jurisdictions,
    get_districts,
    get_jurisdiction_name,
    parse_jurisdiction_codes,
)
from lean_ledger_etl.models.records import CandidateRecord, EntityOutcome, EntityStatus, RunSummary
from lean_ledger_etl.transformers.candidates import (
    OFFICE_HOUSE,
    OFFICE_PRESIDENT,
    OFFICE_SENATE,
    build_candidate_record,
    dedupe_candidates,
    empty_candidate_record,
)
from lean_ledger_etl.transformers.donors import DonorAggregator
from lean_ledger_etl.utils.checkpoint import CheckpointStore, RunProgress
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.names import format_candidate_name
from lean_ledger_etl.utils.pagination import merge_unique

CANDIDATE_COUNT_FILE = "candidate-count.txt"


def sweep_partitions(states: list[str] | None = None, presidential_only: bool = False) -> list[str]:
    """
    Partitions in sweep order.

    A full sweep is every jurisdiction followed by the presidential
    partition; a state filter sweeps only those states.
    """
    if presidential_only:
        return [PRESIDENTIAL_PARTITION]
    if states:
        return list(states)
    return [jurisdiction.code for jurisdiction in get_all_jurisdictions()] + [PRESIDENTIAL_PARTITION]


def partition_label(partition: str) -> str:
    if partition == PRESIDENTIAL_PARTITION:
        return "Presidential"
    return f"{get_jurisdiction_name(partition)} ({partition})"


class CandidateRunController:
    """
    Sequential, resumable sweep over partitions.

    Per partition: discover candidates, build each candidate's record,
    dedupe, publish with stale cleanup, record the count, then checkpoint.
    Only ``RateLimitExhaustedError`` ends the sweep early; it leaves the
    checkpoint saved and the current partition not completed.
    """

    def __init__(
        self,
        candidates: FECCandidateExtractor,
        contributions: FECScheduleAExtractor,
        publisher: FirestorePublisher | None = None,
        checkpoint: CheckpointStore | None = None,
        top_donor_limit: int = 50,
        logs_dir: Path | None = None,
    ):
        """
        Args:
            candidates: Candidate search, committee and totals lookups
            contributions: Schedule A extractor
            publisher: Document-store publisher (None for a dry run)
            checkpoint: Progress file (None to run without resume support)
            top_donor_limit: Donors kept per candidate
            logs_dir: Where to write the candidate count for the notify step
        """
        self.candidates = candidates
        self.contributions = contributions
        self.publisher = publisher
        self.checkpoint = checkpoint
        self.top_donor_limit = top_donor_limit
        self.logs_dir = logs_dir
        self.progress = RunProgress()

    # ------------------------------------------------------------------
    # Discovery and per-candidate processing
    # ------------------------------------------------------------------

    def discover(self, partition: str) -> list[FECCandidate]:
        """Active candidates of a partition, deduplicated by candidate id."""
        if partition == PRESIDENTIAL_PARTITION:
            return self.candidates.extract(OFFICE_PRESIDENT)

        searches = [self.candidates.extract(OFFICE_SENATE, state=partition)]
        for district in get_districts(partition):
            searches.append(self.candidates.extract(OFFICE_HOUSE, state=partition, district=district))
        return merge_unique(searches, key=lambda c: c.candidate_id)

    def process_candidate(
        self, candidate: FECCandidate, partition: str
    ) -> tuple[CandidateRecord, EntityOutcome]:
        """
        Build one candidate's record.

        Candidates without a committee or without data, and candidates whose
        lookups failed, still get a zero-total record.

        Raises:
            RateLimitExhaustedError: Always propagated to stop the sweep
        """
        logger = get_logger(__name__)
        name = format_candidate_name(candidate.name)
        logger.info(f"  Processing: {name} ({candidate.party or 'UNK'}) - {candidate.office}")

        committee = None
        try:
            committee = self.candidates.get_principal_committee(candidate.candidate_id)
            if committee is None:
                logger.warning(f"    No committee found for {name}")
                return empty_candidate_record(candidate, partition), EntityOutcome(
                    name=name, status=EntityStatus.DEGRADED, detail="No committee found"
                )

            totals = self.candidates.get_totals(candidate.candidate_id)
            aggregator = DonorAggregator().add_all(self.contributions.extract(committee.committee_id))
            record = build_candidate_record(
                candidate,
                partition,
                committee,
                aggregator,
                totals=totals,
                top_donor_limit=self.top_donor_limit,
            )

        except RateLimitExhaustedError:
            raise
        except LeanLedgerError as e:
            logger.error(f"    Error processing {name}: {e}")
            return empty_candidate_record(candidate, partition, committee), EntityOutcome(
                name=name, status=EntityStatus.ERROR, detail=str(e)
            )

        if record.total_raised <= 0 and record.donor_count == 0:
            logger.warning(f"    No contribution data for {name}")
            return record, EntityOutcome(name=name, status=EntityStatus.DEGRADED, detail="No data")

        logger.info(
            f"    ${record.total_raised:,.2f} raised, {record.donor_count} donors "
            f"({committee.committee_id})"
        )
        return record, EntityOutcome(name=name, status=EntityStatus.OK)

    def sweep_partition(
        self, partition: str, name_filter: str | None = None
    ) -> tuple[list[CandidateRecord], list[EntityOutcome]]:
        """
        Discover and process a partition's candidates, in discovery order.

        Outcomes are returned rather than recorded so that a partition cut
        short by the rate limit leaves no trace in the run summary.
        """
        logger = get_logger(__name__)
        found = self.discover(partition)

        if name_filter:
            needle = name_filter.lower()
            found = [
                c
                for c in found
                if needle in (c.name or "").lower() or needle in format_candidate_name(c.name).lower()
            ]

        logger.info(f"  {len(found)} candidates to process")

        records = []
        outcomes = []
        for candidate in found:
            record, outcome = self.process_candidate(candidate, partition)
            records.append(record)
            outcomes.append(outcome)

        deduped = dedupe_candidates(records)
        if len(deduped) < len(records):
            logger.info(f"  Collapsed {len(records) - len(deduped)} duplicate candidate(s)")
        return deduped, outcomes

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def _save_progress(self) -> None:
        if self.checkpoint is not None:
            self.checkpoint.save(self.progress)

    def run(
        self,
        states: list[str] | None = None,
        presidential_only: bool = False,
        resume: bool = False,
        name_filter: str | None = None,
    ) -> RunSummary:
        """
        Sweep partitions, skipping ones a resumed checkpoint marks completed.

        Args:
            states: Restrict the sweep to these jurisdiction codes
            presidential_only: Sweep only the presidential partition
            resume: Load the checkpoint and skip its completed partitions
            name_filter: Only candidates whose name contains this text; the
                batch is then partial, so stale cleanup, partition counts
                and checkpointing are skipped

        Returns:
            Run summary
        """
        logger = get_logger(__name__)
        summary = RunSummary(dry_run=self.publisher is None)
        partial = name_filter is not None
        checkpointing = self.checkpoint is not None and not partial

        self.progress = RunProgress()
        if resume and self.checkpoint is not None:
            saved = self.checkpoint.load()
            if saved is not None:
                self.progress = saved
                logger.info(
                    f"Resuming: {len(saved.completed)} partition(s) already completed "
                    f"({', '.join(saved.completed)})"
                )

        partitions = sweep_partitions(states, presidential_only)
        pending = [p for p in partitions if not self.progress.is_completed(p)]
        logger.info(f"Partitions to sweep: {len(pending)} of {len(partitions)}")

        failed_partitions = []
        for partition in pending:
            logger.info("=" * 70)
            logger.info(partition_label(partition))
            logger.info("=" * 70)
            self.progress.mark_in_progress(partition)

            try:
                records, outcomes = self.sweep_partition(partition, name_filter)
                if self.publisher is not None:
                    self.publisher.publish_partition(partition, records, remove_stale=not partial)
                    summary.published += len(records)
                    if not partial:
                        self.publisher.update_partition_count(partition, len(records))
                for outcome in outcomes:
                    summary.record(outcome)
            except RateLimitExhaustedError as e:
                summary.rate_limit_hit = True
                self.progress.mark_rate_limited(partition)
                if checkpointing:
                    self._save_progress()
                logger.error("** Rate limit exhausted, stopping early **")
                logger.error(str(e))
                logger.error("Re-run with --resume to continue from the last completed partition.")
                break
            except LeanLedgerError as e:
                # Discovery or publish failed: the partition stays pending
                logger.error(f"  Failed to sweep {partition}: {e}")
                summary.record(
                    EntityOutcome(name=partition, status=EntityStatus.ERROR, detail=str(e))
                )
                failed_partitions.append(partition)
                continue

            self.progress.mark_completed(partition, len(records))
            if checkpointing:
                self._save_progress()

        self._finish(summary, partitions, partial, checkpointing)
        return summary

    def _finish(
        self, summary: RunSummary, partitions: list[str], partial: bool, checkpointing: bool
    ) -> None:
        logger = get_logger(__name__)
        swept_all = all(self.progress.is_completed(p) for p in partitions)

        candidate_count = sum(self.progress.counts.get(p, 0) for p in partitions)
        if self.publisher is not None and not partial and not summary.rate_limit_hit:
            candidate_count = self.publisher.rollup_candidate_count()

        if checkpointing and swept_all:
            self.checkpoint.clear()

        if self.logs_dir is not None and not partial:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            (self.logs_dir / CANDIDATE_COUNT_FILE).write_text(str(candidate_count))

        logger.info("=" * 70)
        logger.info("SUMMARY")
        logger.info("=" * 70)
        for line in summary.log_lines():
            logger.info(line)
        logger.info(f"Candidates in swept partitions: {candidate_count}")
        if not swept_all:
            remaining = [p for p in partitions if not self.progress.is_completed(p)]
            logger.info(f"Partitions not completed: {', '.join(remaining)}")


def build_candidate_controller(
    settings: Settings, dry_run: bool = False, checkpoint_path: Path | None = None
) -> CandidateRunController:
    """
    Wire a ``CandidateRunController`` from settings with one shared FEC client.

    Dry runs neither publish nor checkpoint, so a later real run never
    skips partitions that were only fetched.
    """
    client = FECAPIClient.from_settings(settings)
    publisher = None if dry_run else FirestorePublisher(FirestoreClient.from_settings(settings))
    checkpoint = None if dry_run else CheckpointStore(checkpoint_path or settings.checkpoint_path)
    return CandidateRunController(
        candidates=FECCandidateExtractor(client, cycles=settings.candidate_cycles),
        contributions=FECScheduleAExtractor(
            client,
            cycles=settings.candidate_cycles,
            max_pages=settings.max_contribution_pages,
            max_records=settings.max_contribution_records,
        ),
        publisher=publisher,
        checkpoint=checkpoint,
        top_donor_limit=settings.top_donor_limit,
        logs_dir=settings.logs_dir,
    )


@flow(
    name="candidate-sweep",
    description="Build donor profiles for active federal candidates, jurisdiction by jurisdiction",
    retries=0,  # Resumption is an explicit operator action
)
def candidate_sweep_flow(
    dry_run: bool = False,
    candidate: str | None = None,
    states: str | None = None,
    resume: bool = False,
    presidential_only: bool = False,
    checkpoint_path: str | None = None,
) -> RunSummary:
    """
    Sweep candidates.

    Args:
        dry_run: Fetch and aggregate without publishing or checkpointing
        candidate: Only candidates whose name contains this text
        states: Comma-separated jurisdiction codes (e.g. "CA,NY")
        resume: Skip partitions completed by an interrupted run
        presidential_only: Sweep only presidential candidates
        checkpoint_path: Override the checkpoint file location

    Returns:
        Run summary
    """
    logger = get_logger(__name__)
    settings = get_settings()
    try:
        state_codes = parse_jurisdiction_codes(states) if states else None
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    logger.info("=" * 70)
    logger.info("Candidate Sweep")
    logger.info(f"Cycles: {settings.candidate_cycles}")
    logger.info(f"Dry run: {dry_run}")
    if state_codes:
        logger.info(f"States: {', '.join(state_codes)}")
    if presidential_only:
        logger.info("Presidential candidates only")
    if candidate:
        logger.info(f"Candidate filter: {candidate}")
    logger.info("=" * 70)

    controller = build_candidate_controller(
        settings,
        dry_run=dry_run,
        checkpoint_path=Path(checkpoint_path) if checkpoint_path else None,
    )
    return controller.run(
        states=state_codes,
        presidential_only=presidential_only,
        resume=resume,
        name_filter=candidate,
    )
