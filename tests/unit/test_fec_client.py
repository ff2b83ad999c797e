"""
Unit tests for the FEC rate limiter and API client.

HTTP is mocked at the session; time is a fake clock, so backoff and pacing
are asserted on recorded sleeps instead of waited out.
"""

from unittest.mock import Mock

import pytest
import requests

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.exceptions import FECAPIError, RateLimitExhaustedError
from lean_ledger_etl.utils.rate_limiter import FECRateLimiter


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(rate_limiter, session):
    return FECAPIClient("test-key", rate_limiter, session=session)


class TestRateLimiter:
    """Pacing, hourly window and backoff schedule."""

    def test_first_request_does_not_wait(self, rate_limiter, fake_clock):
        rate_limiter.wait_if_needed()
        assert fake_clock.sleeps == []

    def test_min_delay_between_requests(self, rate_limiter, fake_clock):
        rate_limiter.wait_if_needed()
        rate_limiter.record_request()
        fake_clock.now += 1.0

        rate_limiter.wait_if_needed()

        assert fake_clock.sleeps == [pytest.approx(2.6)]

    def test_hourly_window_blocks_until_oldest_expires(self, fake_clock):
        limiter = FECRateLimiter(
            min_delay=0, max_per_hour=2, clock=fake_clock, sleep=fake_clock.sleep
        )
        limiter.record_request()
        fake_clock.now += 10
        limiter.record_request()

        limiter.wait_if_needed()

        assert fake_clock.sleeps == [pytest.approx(3590)]
        assert limiter.get_stats()["requests_last_hour"] == 1

    def test_backoff_doubles_and_caps(self, rate_limiter):
        delays = [rate_limiter.backoff_delay(attempt) for attempt in range(6)]
        assert delays == [10, 20, 40, 80, 120, 120]

    def test_exhausted_after_consecutive_throttles(self, rate_limiter):
        for _ in range(7):
            rate_limiter.record_throttle()
        assert not rate_limiter.exhausted

        rate_limiter.record_throttle()
        assert rate_limiter.exhausted

    def test_success_resets_throttle_count(self, rate_limiter):
        rate_limiter.record_throttle()
        rate_limiter.record_throttle()
        rate_limiter.record_success()
        assert rate_limiter.consecutive_429s == 0


class TestFECAPIClient:
    """Retry, backoff and error mapping of ``FECAPIClient.get``."""

    def test_success_returns_json_and_sends_api_key(self, client, session, response_factory):
        session.get.return_value = response_factory(200, {"results": [{"id": 1}]})

        data = client.get("/candidates/", {"office": "S"})

        assert data == {"results": [{"id": 1}]}
        _, kwargs = session.get.call_args
        assert kwargs["params"]["api_key"] == "test-key"
        assert kwargs["params"]["office"] == "S"

    def test_429_backs_off_then_succeeds(self, client, session, response_factory, fake_clock):
        session.get.side_effect = [
            response_factory(429),
            response_factory(200, {"results": []}),
        ]

        data = client.get("/candidates/")

        assert data == {"results": []}
        assert session.get.call_count == 2
        assert fake_clock.sleeps == [10]
        assert client.rate_limiter.consecutive_429s == 0

    def test_non_429_error_fails_without_retry(self, client, session, response_factory):
        session.get.return_value = response_factory(500)

        with pytest.raises(FECAPIError) as exc_info:
            client.get("/candidates/")

        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, RateLimitExhaustedError)
        assert session.get.call_count == 1

    def test_retry_ceiling_raises_plain_api_error(self, client, session, response_factory):
        session.get.return_value = response_factory(429)

        with pytest.raises(FECAPIError) as exc_info:
            client.get("/candidates/")

        assert not isinstance(exc_info.value, RateLimitExhaustedError)
        assert exc_info.value.status_code == 429
        assert session.get.call_count == 6

    def test_consecutive_429s_across_calls_exhaust_budget(self, client, session, response_factory):
        session.get.return_value = response_factory(429)

        with pytest.raises(FECAPIError):
            client.get("/first/")
        with pytest.raises(RateLimitExhaustedError) as exc_info:
            client.get("/second/")

        assert exc_info.value.consecutive_429s == 8
        assert session.get.call_count == 8

    def test_exhausted_client_makes_no_more_requests(self, client, session):
        client.rate_limiter.consecutive_429s = 8

        with pytest.raises(RateLimitExhaustedError):
            client.get("/candidates/")

        session.get.assert_not_called()

    def test_transport_error_retried(self, client, session, response_factory):
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            response_factory(200, {"ok": True}),
        ]

        assert client.get("/candidates/") == {"ok": True}
        assert session.get.call_count == 2

    def test_malformed_json_is_api_error(self, client, session, response_factory):
        response = response_factory(200)
        response.json.side_effect = ValueError("no json")
        session.get.return_value = response

        with pytest.raises(FECAPIError, match="Malformed JSON"):
            client.get("/candidates/")
