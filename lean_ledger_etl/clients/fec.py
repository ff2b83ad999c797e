from typing import Any

import requests

from lean_ledger_etl.config import Settings
from lean_ledger_etl.exceptions import FECAPIError, RateLimitExhaustedError
from lean_ledger_etl.utils.log import get_logger
from lean_ledger_etl.utils.rate_limiter import FECRateLimiter


class FECAPIClient:
    """
    Client for making requests to the FEC API.

    Handles authentication, pacing, 429 backoff and request execution.
    Shared by all FEC extractors.

    The rate limiter is injected so that every extractor in a run draws
    from one budget; there is no module-level limiter.
    """

    DEFAULT_BASE_URL = "https://api.open.fec.gov/v1"

    def __init__(
        self,
        api_key: str,
        rate_limiter: FECRateLimiter,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 5,
        session: requests.Session | None = None,
    ):
        """
        Initialize FEC API client.

        Args:
            api_key: api.data.gov key sent as the ``api_key`` query parameter
            rate_limiter: Shared limiter holding the pacing clock and 429 counter
            base_url: API root
            timeout: Per-request timeout in seconds
            max_retries: Retry attempts per call after a 429 or transport failure
            session: Optional requests session (one is created if None)
        """
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        rate_limiter: FECRateLimiter | None = None,
        session: requests.Session | None = None,
    ) -> "FECAPIClient":
        """Build a client (and, if not given, its limiter) from settings."""
        return cls(
            api_key=settings.fec_api_key,
            rate_limiter=rate_limiter or FECRateLimiter.from_settings(settings),
            base_url=settings.fec_api_base_url,
            timeout=settings.fec_request_timeout,
            max_retries=settings.rate_limit_max_retries,
            session=session,
        )

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Make a GET request to the FEC API with pacing and 429 backoff.

        429 responses back off exponentially (capped) and retry up to
        ``max_retries`` times. Any other non-2xx status fails immediately.

        Args:
            endpoint: API endpoint path (e.g., '/schedules/schedule_a/')
            params: Query parameters (api_key added automatically); list
                values are sent as repeated keys

        Returns:
            JSON response as dictionary

        Raises:
            RateLimitExhaustedError: If consecutive 429s hit the hard limit
            FECAPIError: On any other failed request
        """
        logger = get_logger(__name__)

        if self.rate_limiter.exhausted:
            raise RateLimitExhaustedError(self.rate_limiter.consecutive_429s)

        url = f"{self.base_url}{endpoint}"
        request_params = dict(params or {})
        request_params["api_key"] = self.api_key

        for attempt in range(self.max_retries + 1):  # +1 for initial attempt
            self.rate_limiter.wait_if_needed()
            self.rate_limiter.record_request()

            try:
                response = self.session.get(url, params=request_params, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt < self.max_retries:
                    delay = self.rate_limiter.backoff(attempt)
                    logger.warning(
                        f"Request failed on attempt {attempt + 1}/{self.max_retries + 1} "
                        f"for {endpoint}: {e}. Retried after {delay:.0f}s"
                    )
                    continue
                raise FECAPIError(
                    f"Request failed after {self.max_retries + 1} attempts for {endpoint}: {e}"
                ) from e

            if response.status_code == 429:
                consecutive = self.rate_limiter.record_throttle()
                if self.rate_limiter.exhausted:
                    logger.error(
                        f"Rate limit exhausted ({consecutive} consecutive 429s) for {endpoint}"
                    )
                    raise RateLimitExhaustedError(consecutive)

                if attempt < self.max_retries:
                    delay = self.rate_limiter.backoff_delay(attempt)
                    logger.warning(
                        f"Rate limited (429) on attempt {attempt + 1}/{self.max_retries + 1} "
                        f"for {endpoint}. Waiting {delay:.0f}s before retry..."
                    )
                    self.rate_limiter.backoff(attempt)
                    continue
                break

            if not response.ok:
                logger.error(f"FEC API error ({response.status_code}) for {endpoint}")
                raise FECAPIError(
                    f"FEC API error: {response.status_code} {response.reason} for {endpoint}",
                    status_code=response.status_code,
                )

            self.rate_limiter.record_success()
            try:
                return response.json()
            except ValueError as e:
                raise FECAPIError(
                    f"Malformed JSON from {endpoint}", status_code=response.status_code
                ) from e

        raise FECAPIError(
            f"FEC API error: 429 Too Many Requests for {endpoint} (retries exhausted)",
            status_code=429,
        )
