"""Firebase Cloud Messaging (HTTP v1) refresh notifications."""

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession

from lean_ledger_etl.clients.firestore import (
    FIREBASE_MESSAGING_SCOPE,
    authorized_session,
)
from lean_ledger_etl.config import Settings
from lean_ledger_etl.utils.log import get_logger

NOTIFICATION_TITLE = "Lean Ledger Data Updated"


def refresh_message(topic: str, organization_count: int, candidate_count: int) -> dict:
    return {
        "message": {
            "topic": topic,
            "notification": {
                "title": NOTIFICATION_TITLE,
                "body": (
                    f"{organization_count} companies and {candidate_count} candidates "
                    "refreshed with latest FEC data."
                ),
            },
            "apns": {"payload": {"aps": {"sound": "default"}}},
        }
    }


class NotificationClient:
    """Sends the "data refreshed" message to a topic."""

    BASE_URL = "https://fcm.googleapis.com/v1"

    def __init__(
        self, project_id: str, session: AuthorizedSession, topic: str = "updates", timeout: float = 30.0
    ):
        self.project_id = project_id
        self.session = session
        self.topic = topic
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationClient":
        return cls(
            settings.firestore_project_id,
            authorized_session(settings, scopes=[FIREBASE_MESSAGING_SCOPE]),
            topic=settings.notification_topic,
        )

    def send_refresh_notification(self, organization_count: int, candidate_count: int) -> bool:
        """
        Announce a refresh. Failures are logged and never raised.

        Returns:
            True if the message was accepted
        """
        logger = get_logger(__name__)
        url = f"{self.BASE_URL}/projects/{self.project_id}/messages:send"
        payload = refresh_message(self.topic, organization_count, candidate_count)

        try:
            response = self.session.request("POST", url, json=payload, timeout=self.timeout)
        except (requests.RequestException, GoogleAuthError) as e:
            logger.warning(f"Failed to send notification (non-fatal): {e}")
            return False

        if not response.ok:
            logger.warning(
                f"Failed to send notification (non-fatal): {response.status_code} {response.text}"
            )
            return False

        logger.info(f"Refresh notification sent to topic '{self.topic}'")
        return True

