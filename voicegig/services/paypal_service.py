# voicegig/services/paypal_service.py
"""
Thin PayPal REST client: client-credentials token, Payouts API and the
"Connect with PayPal" OpenID flow.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional
import logging
import time
import uuid

import httpx

from voicegig.utils.exceptions import PayoutProviderError

logger = logging.getLogger(__name__)

LIVE_BASE_URL = "https://api-m.paypal.com"
SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"

EMAIL_SUBJECT = "You have a payout from VoiceGig Marketplace"
EMAIL_MESSAGE = "Your earnings have been sent to your PayPal account"
ITEM_NOTE = "Thanks for your work on VoiceGig Marketplace!"


def new_batch_ids() -> Dict[str, str]:
    millis = int(time.time() * 1000)
    return {
        "batch_id": f"PAYOUT_{uuid.uuid4()}_{millis}",
        "item_id": f"ITEM_{uuid.uuid4()}_{millis}",
    }


@dataclass
class PayoutBatch:
    payout_batch_id: Optional[str]
    batch_status: Optional[str]
    raw: Dict[str, Any]


class PayPalClient:
    def __init__(self, client_id: Optional[str], secret: Optional[str], mode: str = "sandbox",
                 http: Optional[httpx.Client] = None):
        self.client_id = client_id or ""
        self.secret = secret or ""
        self.base_url = LIVE_BASE_URL if mode == "live" else SANDBOX_BASE_URL
        self.http = http or httpx.Client(
            timeout=httpx.Timeout(30.0, connect=10.0),
            transport=httpx.HTTPTransport(retries=2),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)

    def _token(self, data: Dict[str, str]) -> Dict[str, Any]:
        try:
            resp = self.http.post(
                f"{self.base_url}/v1/oauth2/token",
                data=data,
                auth=(self.client_id, self.secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise PayoutProviderError("PayPal authentication failed", cause=e)

        if resp.status_code >= 400:
            logger.error(f"PayPal token request failed ({resp.status_code}): {resp.text}")
            raise PayoutProviderError("PayPal authentication failed", status_code=resp.status_code)
        return resp.json()

    def get_access_token(self) -> str:
        token = self._token({"grant_type": "client_credentials"}).get("access_token")
        if not token:
            raise PayoutProviderError("PayPal authentication failed")
        return token

    def create_payout(self, amount: Decimal, receiver: str, batch_id: str, item_id: str,
                      currency: str = "USD") -> PayoutBatch:
        """
        Send a single-item EMAIL payout. The sender batch id doubles as the
        PayPal-Request-Id so a retried request is not paid twice.
        Raises PayoutProviderError carrying PayPal's status and message on failure.
        """
        access_token = self.get_access_token()
        body = {
            "sender_batch_header": {
                "sender_batch_id": batch_id,
                "email_subject": EMAIL_SUBJECT,
                "email_message": EMAIL_MESSAGE,
            },
            "items": [
                {
                    "recipient_type": "EMAIL",
                    "amount": {"value": str(amount), "currency": currency},
                    "receiver": receiver,
                    "note": ITEM_NOTE,
                    "sender_item_id": item_id,
                }
            ],
        }

        try:
            resp = self.http.post(
                f"{self.base_url}/v1/payments/payouts",
                json=body,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "PayPal-Request-Id": batch_id,
                },
            )
        except httpx.HTTPError as e:
            raise PayoutProviderError("PayPal payout failed", cause=e)

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400:
            logger.error(f"PayPal payout error ({resp.status_code}): {data}")
            raise PayoutProviderError(
                data.get("message") or "PayPal payout failed",
                status_code=resp.status_code,
                details={"name": data.get("name")} if data.get("name") else None,
            )

        header = data.get("batch_header") or {}
        return PayoutBatch(
            payout_batch_id=header.get("payout_batch_id"),
            batch_status=header.get("batch_status"),
            raw=data,
        )

    # ──────────────────────────────────────────────
    # Connect with PayPal
    # ──────────────────────────────────────────────

    def exchange_code(self, code: str) -> str:
        token = self._token({"grant_type": "authorization_code", "code": code}).get("access_token")
        if not token:
            raise PayoutProviderError("PayPal token exchange failed")
        return token

    def get_user_info(self, access_token: str) -> Dict[str, Any]:
        try:
            resp = self.http.get(
                f"{self.base_url}/v1/identity/openidconnect/userinfo",
                params={"schema": "openid"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise PayoutProviderError("PayPal user info failed", cause=e)

        if resp.status_code >= 400:
            logger.error(f"PayPal userinfo failed ({resp.status_code}): {resp.text}")
            raise PayoutProviderError("PayPal user info failed", status_code=resp.status_code)
        return resp.json()
