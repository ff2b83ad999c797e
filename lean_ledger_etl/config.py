"""Configuration management using Pydantic settings."""

from datetime import datetime
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lean_ledger_etl.exceptions import ConfigurationError

# FEC data availability constants
FEC_DATA_START_YEAR = 1980  # FEC electronic data begins in 1980


def get_current_cycle() -> int:
    """
    Get the current election cycle (current or next even year).

    Returns:
        Current election cycle year
    """
    current_year = datetime.now().year
    if current_year % 2 == 0:
        return current_year
    return current_year + 1


def get_max_cycle() -> int:
    """
    Get maximum allowed election cycle (4 years beyond current cycle).

    Returns:
        Maximum election cycle year
    """
    return get_current_cycle() + 4


def validate_election_cycle(cycle: int) -> int:
    """
    Validate and return election cycle.

    FEC uses two-year cycles ending in even years (e.g., 2024 covers 2023-2024).

    Args:
        cycle: Election cycle year

    Returns:
        Validated cycle year

    Raises:
        ValueError: If cycle is invalid
    """
    if isinstance(cycle, bool) or not isinstance(cycle, int):
        raise ValueError("Election cycle must be an integer")

    if cycle < FEC_DATA_START_YEAR:
        raise ValueError(
            f"Election cycle must be {FEC_DATA_START_YEAR} or later "
            f"(FEC electronic data starts in {FEC_DATA_START_YEAR})"
        )

    max_cycle = get_max_cycle()
    if cycle > max_cycle:
        raise ValueError(f"Election cycle must be {max_cycle} or earlier (current cycle + 4 years)")

    if cycle % 2 != 0:
        raise ValueError(
            f"Election cycle must be an even year (e.g., 2024, 2026). "
            f"Got {cycle}. Did you mean {cycle + 1}?"
        )

    return cycle


# Find project root (where .env should be)
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    fec_api_key: str
    fec_api_base_url: str = "https://api.open.fec.gov/v1"
    fec_request_timeout: float = 30.0

    # Rate Limiting
    # 3.6s between requests keeps us safely under the 1000/hour key quota
    api_rate_limit_delay: float = 3.6
    max_requests_per_hour: int = 950
    rate_limit_base_backoff: float = 10.0
    rate_limit_max_backoff: float = 120.0
    rate_limit_max_retries: int = 5
    rate_limit_max_consecutive_429s: int = 8

    # Extraction Configuration
    candidate_cycles: list[int] = [2024, 2026]
    organization_cycles: list[int] = [2024, 2026, 2022]
    max_contribution_pages: int = 5
    max_contribution_records: int = 500
    max_disbursement_records: int = 10000
    top_donor_limit: int = 50

    # Document store / notifications
    firestore_project_id: str | None = None
    firebase_service_account_path: str | None = None
    notification_topic: str = "updates"

    # Run state
    checkpoint_path: Path = PROJECT_ROOT / "logs" / "candidate-progress.json"
    logs_dir: Path = PROJECT_ROOT / "logs"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("candidate_cycles", "organization_cycles")
    @classmethod
    def _validate_cycles(cls, cycles: list[int]) -> list[int]:
        if not cycles:
            raise ValueError("At least one election cycle is required")
        return [validate_election_cycle(cycle) for cycle in cycles]

    def require_publishing(self) -> None:
        """
        Check the settings needed to write to the document store.

        Raises:
            ConfigurationError: If the project id or service account is missing
        """
        if not self.firebase_service_account_path:
            raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT_PATH environment variable not set")
        if not Path(self.firebase_service_account_path).is_file():
            raise ConfigurationError(
                f"Service account file not found: {self.firebase_service_account_path}"
            )
        if not self.firestore_project_id:
            raise ConfigurationError("FIRESTORE_PROJECT_ID environment variable not set")


# noinspection PyArgumentList
@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Raises:
        ConfigurationError: If required settings (e.g. FEC_API_KEY) are missing
    """
    try:
        return Settings()  # type: ignore
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(f"Invalid or missing settings: {', '.join(missing)}") from e
