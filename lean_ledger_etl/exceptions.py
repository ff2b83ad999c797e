"""Exception hierarchy shared across the pipeline."""


class LeanLedgerError(Exception):
    """Base exception for pipeline errors."""

    pass


class ConfigurationError(LeanLedgerError):
    """Raised when required configuration is missing or invalid at startup."""

    pass


class FECAPIError(LeanLedgerError):
    """Raised when an FEC API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitExhaustedError(FECAPIError):
    """
    Raised when the API keeps throttling us past the configured hard limit.

    Fatal for the current run but resumable: callers must stop, persist
    progress, and never record the in-flight entity as failed.
    """

    def __init__(self, consecutive_429s: int) -> None:
        super().__init__(
            f"FEC API rate limit exhausted after {consecutive_429s} consecutive 429 responses. "
            "Get a dedicated API key at https://api.data.gov/signup",
            status_code=429,
        )
        self.consecutive_429s = consecutive_429s


class DocumentStoreError(LeanLedgerError):
    """Raised when the document store rejects a read or write."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
