# voicegig/services/mailer.py
from typing import Any, Dict, Optional
import logging

import httpx

from voicegig.utils.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendMailer:
    """
    Sends transactional email through the Resend HTTP API.
    Without an API key it only logs what would have been sent (local dev).
    """

    def __init__(self, api_key: Optional[str], sender: str, http: Optional[httpx.Client] = None):
        self.api_key = api_key
        self.sender = sender
        self.http = http or httpx.Client(timeout=httpx.Timeout(15.0, connect=5.0))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        if not self.is_configured:
            logger.info(f"Email would be sent: from={self.sender} to={to} subject={subject!r}")
            return {"id": None}

        try:
            resp = self.http.post(
                RESEND_API_URL,
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Resend request failed: {e}", cause=e)

        if resp.status_code >= 400:
            raise EmailDeliveryError(f"Resend API error: {resp.status_code} - {resp.text}")

        try:
            result = resp.json()
        except ValueError:
            logger.warning(f"Resend returned a non-JSON body for {to}: {resp.text[:200]!r}")
            result = {"id": None}
        logger.info(f"Email sent to {to}: {result.get('id')}")
        return result
