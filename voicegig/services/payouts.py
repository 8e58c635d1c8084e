# voicegig/services/payouts.py
"""
Withdrawals from the wallet to PayPal or Stripe Connect.

A payout is a best-effort saga over the ledger:

    check balance → append debit → call provider
        ├─ provider ok     → record payouts row (processing)
        └─ provider failed → append compensating credit, record failed attempt

There is no distributed transaction. The per-user lock only narrows the
window between the balance check and the debit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple
import logging

from voicegig.services.ledger import Ledger, to_money
from voicegig.services.locks import PayoutLocks
from voicegig.services.paypal_service import PayPalClient, new_batch_ids
from voicegig.services.stripe_service import StripeConnect
from voicegig.services.supabase_service import SupabaseService
from voicegig.utils.exceptions import (
    InsufficientFundsError, LedgerWriteError, PayoutProviderError, ValidationError,
)

logger = logging.getLogger(__name__)

PAYPAL = "paypal"
STRIPE = "stripe"


@dataclass
class PayoutResult:
    payout_id: Optional[str]
    status: Optional[str]
    amount: Decimal
    method: str
    external_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "payout_id": self.payout_id, "status": self.status}


def parse_amount(raw: Any, minimum: Decimal) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ValidationError("Amount must be a number")
    try:
        amount = to_money(raw)
    except ValueError:
        raise ValidationError("Amount must be a number")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if amount < minimum:
        raise ValidationError(f"Minimum payout is ${minimum:.2f}")
    return amount


class PayoutService:
    def __init__(self, db: SupabaseService, ledger: Ledger, locks: PayoutLocks,
                 on_wallet_change: Optional[Callable[[str], None]] = None):
        self.db = db
        self.ledger = ledger
        self.locks = locks
        self.on_wallet_change = on_wallet_change

    # ──────────────────────────────────────────────
    # Providers
    # ──────────────────────────────────────────────

    def paypal_payout(self, paypal: PayPalClient, user_id: str, amount: Decimal,
                      email: str, currency: str = "USD") -> PayoutResult:
        ids = new_batch_ids()

        def send() -> Tuple[Optional[str], Optional[str]]:
            batch = paypal.create_payout(amount, email, ids["batch_id"], ids["item_id"], currency=currency)
            return batch.payout_batch_id, batch.batch_status

        return self._run(
            user_id, amount, PAYPAL, ids["batch_id"], send,
            record={"payout_email": email},
            provider_ref="payout_id",
        )

    def stripe_payout(self, stripe_connect: StripeConnect, user_id: str, amount: Decimal,
                      account_id: str, currency: str = "USD") -> PayoutResult:
        external_id = new_batch_ids()["batch_id"]

        def send() -> Tuple[Optional[str], Optional[str]]:
            transfer_id = stripe_connect.transfer(
                amount, account_id, idempotency_key=external_id,
                currency=currency, user_id=user_id,
            )
            return transfer_id, "PENDING"

        return self._run(
            user_id, amount, STRIPE, external_id, send,
            record={},
            provider_ref="stripe_transfer_id",
        )

    # ──────────────────────────────────────────────
    # Saga
    # ──────────────────────────────────────────────

    def _run(self, user_id: str, amount: Decimal, method: str, external_id: str,
             send: Callable[[], Tuple[Optional[str], Optional[str]]],
             record: Dict[str, Any], provider_ref: str) -> PayoutResult:
        with self.locks.for_user(user_id) as lock:
            available = self.ledger.compute_balance(user_id)
            if available < amount:
                logger.info(f"Payout refused for user {user_id}: requested {amount}, available {available}")
                raise InsufficientFundsError(available, amount)

            lock.refresh()

            try:
                self.ledger.record_debit(user_id, amount)
            except LedgerWriteError as e:
                raise LedgerWriteError("Failed to update wallet balance", cause=e)

            try:
                provider_id, status = send()
            except PayoutProviderError as e:
                self._compensate(user_id, amount, method, external_id, record, reason=e.message)
                raise
            except Exception as e:
                logger.error(f"Unexpected {method} payout error (user {user_id})", exc_info=True)
                self._compensate(user_id, amount, method, external_id, record, reason=str(e))
                raise PayoutProviderError(f"{method.capitalize()} payout failed", cause=e)

        row = {
            "user_id": user_id,
            "amount": float(amount),
            "status": "processing",
            "payout_method": method,
            "external_id": external_id,
            provider_ref: provider_id,
            **record,
        }
        if provider_ref != "payout_id":
            row["payout_id"] = provider_id
        if not self.db.insert("payouts", row):
            # Money is already on its way; the ledger debit stands.
            logger.error(f"Failed to record {method} payout {provider_id} for user {user_id}")

        logger.info(f"{method} payout {provider_id} of {amount} sent for user {user_id}")
        self._wallet_changed(user_id)
        return PayoutResult(
            payout_id=provider_id, status=status, amount=amount,
            method=method, external_id=external_id,
        )

    def _compensate(self, user_id: str, amount: Decimal, method: str, external_id: str,
                    record: Dict[str, Any], reason: str) -> None:
        try:
            self.ledger.record_credit(user_id, amount)
        except LedgerWriteError:
            logger.critical(
                f"Failed to refund wallet after {method} error: user {user_id}, amount {amount}, "
                f"external id {external_id}"
            )

        self.db.insert("payouts", {
            "user_id": user_id,
            "amount": float(amount),
            "status": "failed",
            "payout_method": method,
            "external_id": external_id,
            **record,
        })
        logger.warning(f"{method} payout failed for user {user_id} ({reason}); wallet refunded")
        self._wallet_changed(user_id)

    def _wallet_changed(self, user_id: str) -> None:
        if self.on_wallet_change:
            self.on_wallet_change(user_id)
