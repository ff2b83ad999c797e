"""Shared test fixtures: fake clock, HTTP response factory and an in-memory Firestore."""

import os
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

# Settings require an API key at import-time call sites
os.environ.setdefault("FEC_API_KEY", "test-key")

from lean_ledger_etl.utils.rate_limiter import FECRateLimiter  # noqa: E402

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
PROJECT = "projects/test-project/databases/(default)/documents"


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_response(status_code: int = 200, body=None, text: str = ""):
    """Mock ``requests.Response`` with the attributes the clients read."""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Error"
    response.text = text
    response.json.return_value = body if body is not None else {}
    return response


def _get_path(fields: dict, path: str):
    parts = path.split(".")
    value = fields.get(parts[0])
    for part in parts[1:]:
        if value is None:
            return None
        value = value.get("mapValue", {}).get("fields", {}).get(part)
    return value


def _set_path(fields: dict, path: str, value) -> None:
    parts = path.split(".")
    target = fields
    for part in parts[:-1]:
        node = target.setdefault(part, {"mapValue": {"fields": {}}})
        target = node.setdefault("mapValue", {}).setdefault("fields", {})
    if value is None:
        target.pop(parts[-1], None)
    else:
        target[parts[-1]] = value


class FakeFirestoreClient:
    """
    In-memory stand-in for ``FirestoreClient``.

    Documents are stored as typed ``fields`` maps per collection. Commits
    honor update masks (including dotted paths), REQUEST_TIME transforms
    and deletes, in write order.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self.commits: list[list[dict]] = []
        self.patches: list[tuple[str, str]] = []

    def document_name(self, collection: str, document_id: str) -> str:
        return f"{PROJECT}/{collection}/{document_id}"

    def _split_name(self, name: str) -> tuple[str, str]:
        collection, document_id = name[len(PROJECT) + 1 :].split("/", 1)
        return collection, document_id

    def get_document(self, collection: str, document_id: str):
        document = self.collections.get(collection, {}).get(document_id)
        return dict(document) if document is not None else None

    def patch_document(self, collection, document_id, fields, update_mask=None):
        self.patches.append((collection, document_id))
        self._apply(collection, document_id, fields, update_mask)

    def run_query(self, collection, field_path, value):
        return [
            document_id
            for document_id, fields in self.collections.get(collection, {}).items()
            if fields.get(field_path) == value
        ]

    def commit(self, writes):
        self.commits.append(list(writes))
        for write in writes:
            if "delete" in write:
                collection, document_id = self._split_name(write["delete"])
                self.collections.get(collection, {}).pop(document_id, None)
                continue

            collection, document_id = self._split_name(write["update"]["name"])
            mask = write.get("updateMask", {}).get("fieldPaths")
            self._apply(collection, document_id, write["update"]["fields"], mask)
            for transform in write.get("updateTransforms", []):
                self.collections[collection][document_id][transform["fieldPath"]] = {
                    "timestampValue": "REQUEST_TIME"
                }
        return 1 if writes else 0

    def _apply(self, collection, document_id, fields, update_mask):
        documents = self.collections.setdefault(collection, {})
        if update_mask is None:
            documents[document_id] = dict(fields)
            return
        document = documents.setdefault(document_id, {})
        for path in update_mask:
            _set_path(document, path, _get_path(fields, path))

    def seed(self, collection: str, document_id: str, fields: dict) -> None:
        self.collections.setdefault(collection, {})[document_id] = dict(fields)

    def ids(self, collection: str) -> set[str]:
        return set(self.collections.get(collection, {}))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock):
    """Limiter on a fake clock; sleeping advances the clock instead of blocking."""
    return FECRateLimiter(clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def fake_store():
    return FakeFirestoreClient()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
