# voicegig/services/stripe_service.py
"""Stripe Connect: Express onboarding and transfers to connected accounts."""

from decimal import Decimal
from typing import Any, Dict, Optional
import logging

import stripe

from voicegig.utils.exceptions import PayoutProviderError

logger = logging.getLogger(__name__)


class StripeConnect:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def create_account(self, email: Optional[str], user_id: str) -> str:
        account = stripe.Account.create(
            api_key=self.api_key,
            type="express",
            email=email,
            capabilities={"transfers": {"requested": True}},
            metadata={"user_id": user_id},
        )
        logger.info(f"Created Stripe Express account {account.id} for user {user_id}")
        return account.id

    def onboarding_link(self, account_id: str, refresh_url: str, return_url: str) -> str:
        link = stripe.AccountLink.create(
            api_key=self.api_key,
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type="account_onboarding",
        )
        return link.url

    def account_status(self, account_id: str) -> Dict[str, Any]:
        account = stripe.Account.retrieve(account_id, api_key=self.api_key)
        return {
            "id": account.id,
            "charges_enabled": bool(account.charges_enabled),
            "payouts_enabled": bool(account.payouts_enabled),
            "details_submitted": bool(account.details_submitted),
        }

    def transfer(self, amount: Decimal, destination: str, idempotency_key: str,
                 currency: str = "usd", user_id: Optional[str] = None) -> str:
        """Move ``amount`` from the platform balance to a connected account."""
        try:
            transfer = stripe.Transfer.create(
                api_key=self.api_key,
                amount=int((amount * 100).to_integral_value()),
                currency=currency.lower(),
                destination=destination,
                metadata={"user_id": user_id or ""},
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe transfer to {destination} failed: {e}")
            raise PayoutProviderError(
                getattr(e, "user_message", None) or str(e) or "Stripe transfer failed",
                status_code=getattr(e, "http_status", None) or 502,
                cause=e,
            )
        return transfer.id
