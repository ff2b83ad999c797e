"""Firestore REST v1 client."""

from typing import Any

import requests
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from lean_ledger_etl.config import Settings
from lean_ledger_etl.exceptions import DocumentStoreError
from lean_ledger_etl.utils.log import get_logger

FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
FIREBASE_MESSAGING_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"

# Firestore rejects commits with more than 500 writes
MAX_WRITES_PER_COMMIT = 500


def load_service_account(path: str, scopes: list[str]) -> Credentials:
    """Load service-account credentials from a JSON key file."""
    return service_account.Credentials.from_service_account_file(path, scopes=scopes)


def authorized_session(settings: Settings, scopes: list[str]) -> AuthorizedSession:
    """
    requests session that attaches (and refreshes) a service-account bearer token.
    """
    settings.require_publishing()
    credentials = load_service_account(settings.firebase_service_account_path, scopes=scopes)
    return AuthorizedSession(credentials)


class FirestoreClient:
    """
    Minimal Firestore client speaking the REST protocol.

    Documents are exchanged in Firestore's typed wire format
    (``{"fields": {"name": {"stringValue": ...}}}``); building that format
    is the caller's job.
    """

    BASE_URL = "https://firestore.googleapis.com/v1"

    def __init__(self, project_id: str, session: AuthorizedSession, timeout: float = 30.0):
        self.project_id = project_id
        self.session = session
        self.timeout = timeout
        self.database = f"projects/{project_id}/databases/(default)"
        self.documents_root = f"{self.database}/documents"

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreClient":
        session = authorized_session(settings, scopes=[FIRESTORE_SCOPE])
        return cls(settings.firestore_project_id, session)

    def document_name(self, collection: str, document_id: str) -> str:
        """Full resource name of a document."""
        return f"{self.documents_root}/{collection}/{document_id}"

    def _call(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.BASE_URL}/{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.RequestException, GoogleAuthError) as e:
            # Token refresh failures surface from inside the session
            raise DocumentStoreError(f"Firestore request failed ({method} {path}): {e}") from e
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response, what: str) -> None:
        if not response.ok:
            raise DocumentStoreError(
                f"Firestore REST error {response.status_code} on {what}: {response.text}",
                status_code=response.status_code,
            )

    def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """
        Read a document.

        Returns:
            The document's typed ``fields`` map, or None if it does not exist
        """
        response = self._call("GET", self.document_name(collection, document_id))
        if response.status_code == 404:
            return None
        self._raise_for_status(response, f"get {collection}/{document_id}")
        return response.json().get("fields", {})

    def patch_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        update_mask: list[str] | None = None,
    ) -> None:
        """
        Create or overwrite a document.

        Args:
            collection: Collection id
            document_id: Document id
            fields: Typed fields map
            update_mask: Field paths to write; other fields are left as they
                are. Without a mask the document is replaced.
        """
        params = {"updateMask.fieldPaths": update_mask} if update_mask else None
        response = self._call(
            "PATCH",
            self.document_name(collection, document_id),
            params=params,
            json={"fields": fields},
        )
        self._raise_for_status(response, f"patch {collection}/{document_id}")

    def run_query(self, collection: str, field_path: str, value: dict[str, Any]) -> list[str]:
        """
        Ids of the documents in ``collection`` whose field equals ``value``.

        Args:
            collection: Collection id
            field_path: Field to filter on
            value: Typed value (e.g. ``{"stringValue": "CA"}``)
        """
        query = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field_path},
                        "op": "EQUAL",
                        "value": value,
                    }
                },
                "select": {"fields": [{"fieldPath": "__name__"}]},
            }
        }
        response = self._call("POST", f"{self.documents_root}:runQuery", json=query)
        self._raise_for_status(response, f"query {collection}.{field_path}")

        # One result per document, plus bookkeeping entries without a document
        return [
            entry["document"]["name"].rsplit("/", 1)[-1]
            for entry in response.json()
            if entry.get("document")
        ]

    def commit(self, writes: list[dict[str, Any]]) -> int:
        """
        Apply writes in atomic batches of at most 500.

        Returns:
            Number of batches committed
        """
        logger = get_logger(__name__)
        batches = 0

        for start in range(0, len(writes), MAX_WRITES_PER_COMMIT):
            chunk = writes[start : start + MAX_WRITES_PER_COMMIT]
            response = self._call("POST", f"{self.documents_root}:commit", json={"writes": chunk})
            self._raise_for_status(response, "commit")
            batches += 1
            logger.debug(f"Committed batch {batches} ({len(chunk)} writes)")

        return batches
