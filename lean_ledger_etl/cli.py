"""
Command line entry point.

Usage:
    lean-ledger organizations [--dry-run] [--company "Walmart"]
    lean-ledger candidates [--dry-run] [--states CA,NY] [--resume]
    lean-ledger candidates --presidential-only
    lean-ledger notify 158 1234

Exit codes: 0 success (always for dry runs), 1 entity errors or rate limit
exhausted, 2 configuration error.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from lean_ledger_etl.clients.notifications import NotificationClient
from lean_ledger_etl.config import Settings, get_settings
from lean_ledger_etl.exceptions import ConfigurationError, LeanLedgerError
from lean_ledger_etl.flows.candidate_flow import candidate_sweep_flow
from lean_ledger_etl.flows.organization_flow import organization_refresh_flow

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", logs_dir: Path | None = None, command: str = "run") -> Path | None:
    """Log to the console and, when ``logs_dir`` is given, to a timestamped file in it."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = None
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"{command}_{timestamp}.log"
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    return log_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lean-ledger",
        description="Refresh campaign-finance data for the Lean Ledger app",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    organizations = commands.add_parser(
        "organizations", help="Categorize tracked companies by their PAC contributions"
    )
    organizations.add_argument(
        "--dry-run", action="store_true", help="Fetch and categorize without publishing"
    )
    organizations.add_argument("--company", help="Process a single tracked company by name")

    candidates = commands.add_parser(
        "candidates", help="Build donor profiles for active federal candidates"
    )
    candidates.add_argument(
        "--dry-run", action="store_true", help="Fetch and aggregate without publishing"
    )
    candidates.add_argument("--candidate", help="Only candidates whose name contains this text")
    candidates.add_argument("--states", help="Comma-separated state codes (e.g. CA,NY,TX)")
    candidates.add_argument(
        "--resume", action="store_true", help="Skip states completed by an interrupted run"
    )
    candidates.add_argument(
        "--presidential-only", action="store_true", help="Sweep only presidential candidates"
    )
    candidates.add_argument("--checkpoint", help="Checkpoint file path")

    notify = commands.add_parser("notify", help="Send the data-refreshed notification")
    notify.add_argument("company_count", type=int, help="Companies refreshed")
    notify.add_argument("candidate_count", type=int, help="Candidates refreshed")

    return parser


def run_organizations(args: argparse.Namespace) -> int:
    summary = organization_refresh_flow(dry_run=args.dry_run, company=args.company)
    return summary.exit_code


def run_candidates(args: argparse.Namespace) -> int:
    summary = candidate_sweep_flow(
        dry_run=args.dry_run,
        candidate=args.candidate,
        states=args.states,
        resume=args.resume,
        presidential_only=args.presidential_only,
        checkpoint_path=args.checkpoint,
    )
    return summary.exit_code


def run_notify(args: argparse.Namespace, settings: Settings) -> int:
    if args.company_count == 0 and args.candidate_count == 0:
        logger.error("Nothing to announce: both counts are 0")
        return EXIT_FAILURE

    client = NotificationClient.from_settings(settings)
    if not client.send_refresh_notification(args.company_count, args.candidate_count):
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION

    log_file = setup_logging(settings.log_level, settings.logs_dir, args.command)
    logger.info(f"Logging to: {log_file}")

    try:
        if args.command == "organizations":
            return run_organizations(args)
        if args.command == "candidates":
            return run_candidates(args)
        return run_notify(args, settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION
    except LeanLedgerError as e:
        logger.error(f"Fatal error: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
