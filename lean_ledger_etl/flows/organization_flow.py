"""
Organization Refresh Flow

For every tracked organization: find its PAC, walk the PAC's disbursements,
split candidate contributions by party and categorize the organization.
Each organization is published as soon as it is categorized so the app
receives data incrementally; the run metadata is merged at the end.
"""

from pathlib import Path

from prefect import flow

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.clients.firestore import FirestoreClient
from lean_ledger_etl.config import Settings, get_settings
from lean_ledger_etl.exceptions import (
    ConfigurationError,
    DocumentStoreError,
    LeanLedgerError,
    RateLimitExhaustedError,
)
from lean_ledger_etl.extractors.fec import FECCommitteeExtractor, FECScheduleBExtractor
from lean_ledger_etl.loaders.firestore import FirestorePublisher
from lean_ledger_etl.models.organizations import TrackedOrganization, load_tracked_organizations
from lean_ledger_etl.models.records import (
    Category,
    EntityOutcome,
    EntityStatus,
    OrganizationRecord,
    RunSummary,
)
from lean_ledger_etl.transformers.categorize import (
    aggregate_stats,
    categorize_organization,
    sort_organizations,
    uncategorized_organization,
)
from lean_ledger_etl.utils.log import get_logger

COMPANY_COUNT_FILE = "company-count.txt"


class OrganizationRunner:
    """Categorizes tracked organizations one at a time and publishes each result."""

    def __init__(
        self,
        committees: FECCommitteeExtractor,
        disbursements: FECScheduleBExtractor,
        publisher: FirestorePublisher | None = None,
        logs_dir: Path | None = None,
    ):
        """
        Args:
            committees: Committee search and party lookup
            disbursements: Schedule B extractor
            publisher: Document-store publisher (None for a dry run)
            logs_dir: Where to write the published count for the notify step
        """
        self.committees = committees
        self.disbursements = disbursements
        self.publisher = publisher
        self.logs_dir = logs_dir
        self.records: list[OrganizationRecord] = []

    def process(self, organization: TrackedOrganization) -> tuple[OrganizationRecord | None, EntityOutcome]:
        """
        Categorize one organization.

        Raises:
            RateLimitExhaustedError: Always propagated to stop the run
        """
        logger = get_logger(__name__)
        logger.info("=" * 60)
        logger.info(f"Processing: {organization.name}")

        try:
            committee = self.committees.search_committee(organization)
            if committee is None:
                logger.warning(f"  No committee found for {organization.name}")
                record = uncategorized_organization(organization)
                return record, EntityOutcome(
                    name=organization.name, status=EntityStatus.DEGRADED, detail="No committee found"
                )

            committee_ids = [committee.committee_id]
            disbursements = self.disbursements.extract(committee.committee_id)
            if not disbursements:
                logger.warning(f"  No disbursements found for {organization.name}")
                record = uncategorized_organization(organization, committee_ids)
                return record, EntityOutcome(
                    name=organization.name, status=EntityStatus.DEGRADED, detail="No disbursements"
                )

            party_map = self.committees.batch_fetch_parties(
                [d.candidate_id for d in disbursements if d.candidate_id]
            )
            record = categorize_organization(organization, disbursements, party_map, committee_ids)

        except RateLimitExhaustedError:
            raise
        except LeanLedgerError as e:
            logger.error(f"  Error processing {organization.name}: {e}")
            return None, EntityOutcome(name=organization.name, status=EntityStatus.ERROR, detail=str(e))

        logger.info(
            f"  {organization.name}: {str(record.category).upper()} "
            f"({record.percent_democrat:.1f}% DEM, {record.percent_republican:.1f}% REP)"
        )
        status = EntityStatus.DEGRADED if record.category == Category.NONE else EntityStatus.OK
        return record, EntityOutcome(name=organization.name, status=status)

    def _publish(self, record: OrganizationRecord, outcome: EntityOutcome, summary: RunSummary) -> EntityOutcome:
        if self.publisher is None:
            return outcome
        try:
            self.publisher.publish_organization(record)
        except DocumentStoreError as e:
            get_logger(__name__).error(f"  Failed to push {record.name}: {e}")
            return EntityOutcome(name=record.name, status=EntityStatus.ERROR, detail=str(e))
        summary.published += 1
        return outcome

    def run(
        self, organizations: list[TrackedOrganization], update_metadata: bool = True
    ) -> RunSummary:
        """
        Process organizations in order, stopping early if the rate budget runs out.

        Args:
            organizations: Organizations to process
            update_metadata: False for partial (filtered) runs, whose count
                would overwrite the full count (also skips the count file)
        """
        logger = get_logger(__name__)
        summary = RunSummary(dry_run=self.publisher is None)
        self.records = []

        logger.info(f"Processing {len(organizations)} companies...")

        for index, organization in enumerate(organizations, start=1):
            try:
                record, outcome = self.process(organization)
            except RateLimitExhaustedError as e:
                summary.rate_limit_hit = True
                logger.error("** Rate limit exhausted, stopping early **")
                logger.error(str(e))
                logger.error(
                    f"Processed {index - 1} of {len(organizations)} companies before hitting limit."
                )
                break

            if record is not None:
                outcome = self._publish(record, outcome, summary)
                if outcome.status != EntityStatus.ERROR:
                    self.records.append(record)
            summary.record(outcome)

        self._log_summary(summary)

        if self.publisher is not None and update_metadata and self.records:
            self.publisher.update_organization_metadata(len(self.records))

        if self.logs_dir is not None and update_metadata:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            (self.logs_dir / COMPANY_COUNT_FILE).write_text(str(len(self.records)))

        return summary

    def _log_summary(self, summary: RunSummary) -> None:
        logger = get_logger(__name__)
        stats = aggregate_stats(self.records)

        logger.info("=" * 70)
        logger.info("SUMMARY")
        logger.info("=" * 70)
        for line in summary.log_lines():
            logger.info(line)

        logger.info("By Category:")
        logger.info(f"  Support (Democrat-friendly): {stats['support']}")
        logger.info(f"  Avoid (Republican-leaning): {stats['avoid']}")
        logger.info(f"  Mixed (No clear lean): {stats['mixed']}")
        logger.info("By Industry:")
        for industry, counts in stats["by_industry"].items():
            logger.info(
                f"  {industry}: {counts['total']} ({counts['support']} support, "
                f"{counts['avoid']} avoid, {counts['mixed']} mixed)"
            )

        listing = sort_organizations(self.records)
        logger.info("Top 10 Democrat-Friendly (SUPPORT):")
        for record in [r for r in listing if r.category == Category.SUPPORT][:10]:
            logger.info(f"  {record.name}: {record.percent_democrat:.1f}% DEM (${record.total_democrat:,.2f})")
        logger.info("Top 10 Republican-Leaning (AVOID):")
        for record in [r for r in listing if r.category == Category.AVOID][:10]:
            logger.info(
                f"  {record.name}: {record.percent_republican:.1f}% REP (${record.total_republican:,.2f})"
            )


def select_organizations(company: str | None = None) -> list[TrackedOrganization]:
    """
    Tracked organizations to process, optionally narrowed to one name.

    Raises:
        ConfigurationError: If ``company`` is not a tracked organization
    """
    organizations = list(load_tracked_organizations())
    if company is None:
        return organizations

    selected = [o for o in organizations if o.name.lower() == company.lower()]
    if not selected:
        sample = ", ".join(o.name for o in organizations[:10])
        raise ConfigurationError(
            f'Company "{company}" not found in tracked companies list (e.g. {sample}, ...)'
        )
    return selected


def build_organization_runner(settings: Settings, dry_run: bool = False) -> OrganizationRunner:
    """Wire an ``OrganizationRunner`` from settings with one shared FEC client."""
    client = FECAPIClient.from_settings(settings)
    publisher = None if dry_run else FirestorePublisher(FirestoreClient.from_settings(settings))
    return OrganizationRunner(
        committees=FECCommitteeExtractor(client, recent_cycles=settings.candidate_cycles),
        disbursements=FECScheduleBExtractor(
            client,
            cycles=settings.organization_cycles,
            max_records=settings.max_disbursement_records,
        ),
        publisher=publisher,
        logs_dir=settings.logs_dir,
    )


@flow(
    name="organization-refresh",
    description="Categorize tracked organizations by their PACs' candidate contributions",
    retries=0,  # A rerun would re-enter the exhausted rate budget
)
def organization_refresh_flow(dry_run: bool = False, company: str | None = None) -> RunSummary:
    """
    Refresh organization records.

    Args:
        dry_run: Fetch and categorize without publishing
        company: Process a single tracked organization

    Returns:
        Run summary
    """
    logger = get_logger(__name__)
    settings = get_settings()

    logger.info("=" * 70)
    logger.info("Organization Refresh")
    logger.info(f"Cycles: {settings.organization_cycles}")
    logger.info(f"Dry run: {dry_run}")
    if company:
        logger.info(f"Processing single company: {company}")
    logger.info("=" * 70)

    organizations = select_organizations(company)
    runner = build_organization_runner(settings, dry_run=dry_run)
    return runner.run(organizations, update_metadata=company is None)
