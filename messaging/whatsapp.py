"""
messaging/whatsapp.py
---------------------
Client for the WhatsApp Cloud API (Meta Graph API).

Responsibilities:
    - Send plain text replies and reminders.
    - Resolve and download voice-note media sent by users.
"""

from typing import Optional

import requests

from utils.logger import get_logger

logger = get_logger(__name__)

GRAPH_URL = "https://graph.facebook.com"


class MessagingError(RuntimeError):
    """The Graph API rejected an outbound message."""


class WhatsAppClient:
    """
    Args:
        access_token: Permanent or system-user token (sent as a bearer token).
        phone_number_id: Sender phone number ID from the Meta app.
        api_version: Graph API version, e.g. 'v22.0'.
        session: Optional requests session (shared connection pool).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v22.0",
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    @property
    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}

    def send_text(self, to: str, body: str) -> None:
        """
        Send a text message.

        Raises:
            MessagingError: If Meta answers with a non-2xx status.
        """
        if not self.is_configured:
            logger.warning(
                "WhatsApp is not configured "
                f"(access token: {bool(self.access_token)}, phone number id: {bool(self.phone_number_id)})"
            )
            return

        url = f"{GRAPH_URL}/{self.api_version}/{self.phone_number_id}/messages"
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        res = self.session.post(url, json=payload, headers=self._auth_headers, timeout=self.timeout)
        logger.info(f"WhatsApp send to {to}: status {res.status_code}")
        if not res.ok:
            raise MessagingError(f"Meta error {res.status_code}: {res.text}")

    def download_media(self, media_id: str) -> Optional[tuple[bytes, str]]:
        """
        Fetch a media object (e.g. a voice note) by its ID.

        Returns:
            (content, mime_type), or None if any step fails.
        """
        if not media_id or not self.access_token:
            return None

        meta_res = self.session.get(
            f"{GRAPH_URL}/{self.api_version}/{media_id}",
            headers=self._auth_headers,
            timeout=self.timeout,
        )
        if not meta_res.ok:
            logger.warning(f"Media lookup for {media_id} failed: {meta_res.status_code}")
            return None
        media = meta_res.json()
        media_url = media.get("url")
        if not media_url:
            return None

        audio_res = self.session.get(media_url, headers=self._auth_headers, timeout=self.timeout)
        if not audio_res.ok:
            logger.warning(f"Media download for {media_id} failed: {audio_res.status_code}")
            return None
        mime_type = (media.get("mime_type") or "audio/ogg").split(";")[0].strip()
        return audio_res.content, mime_type
