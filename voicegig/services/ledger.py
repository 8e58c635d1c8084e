# voicegig/services/ledger.py
"""
Wallet ledger.

Every money movement is an append-only row in ``ledger``:
``{user_id, submission_id, amount, type}`` with ``type`` either ``credit``
or ``debit``. The wallet balance is never stored; it is recomputed from the
user's rows on every request.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional
import logging

from voicegig.services.supabase_service import SupabaseService
from voicegig.utils.exceptions import LedgerError, LedgerWriteError
from voicegig.utils.supabase_retry import retry_supabase

logger = logging.getLogger(__name__)

CREDIT = "credit"
DEBIT = "debit"
CENT = Decimal("0.01")

# Submissions that count towards "pending" earnings
PENDING_SUBMISSION_STATUSES = ("submitted", "approved")


def to_money(value: Any) -> Decimal:
    """Convert a numeric value from JSON/Postgres into a cent-rounded Decimal."""
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise ValueError(f"Invalid money amount: {value!r}")
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidOperation
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid money amount: {value!r}")


def sum_entries(entries: Iterable[Dict[str, Any]]) -> Decimal:
    """available = Σ credits − Σ debits. Unknown entry types are ignored."""
    credits = Decimal("0.00")
    debits = Decimal("0.00")
    for entry in entries:
        kind = entry.get("type")
        if kind == CREDIT:
            credits += to_money(entry.get("amount"))
        elif kind == DEBIT:
            debits += to_money(entry.get("amount"))
    return credits - debits


@dataclass
class WalletSummary:
    available: Decimal
    pending: Decimal
    total_earned: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "available": float(self.available),
            "pending": float(self.pending),
            "total_earned": float(self.total_earned),
        }


class Ledger:
    def __init__(self, db: SupabaseService):
        self.db = db

    @retry_supabase(max_retries=3, backoff=2)
    def _fetch_entries(self, user_id: str, select: str = "amount, type") -> List[Dict]:
        res = self.db.table("ledger").select(select).eq("user_id", user_id).execute()
        return res.data or []

    def entries(self, user_id: str, select: str = "amount, type") -> List[Dict]:
        try:
            return self._fetch_entries(user_id, select)
        except Exception as e:
            logger.error(f"Ledger read failed (user {user_id}): {e}", exc_info=True)
            raise LedgerError("Failed to access wallet", cause=e)

    def compute_balance(self, user_id: str) -> Decimal:
        return sum_entries(self.entries(user_id))

    def wallet_summary(self, user_id: str) -> WalletSummary:
        entries = self.entries(user_id, select="amount, type, submission_id")
        available = sum_entries(entries)
        # Compensating refunds carry no submission, so they are not earnings
        total_earned = sum_entries(
            e for e in entries if e.get("type") == CREDIT and e.get("submission_id")
        )

        try:
            submissions = self.db.table("submissions")\
                .select("status, jobs(payment_amount)")\
                .eq("user_id", user_id)\
                .in_("status", list(PENDING_SUBMISSION_STATUSES))\
                .execute().data or []
        except Exception as e:
            logger.error(f"Pending earnings read failed (user {user_id}): {e}", exc_info=True)
            raise LedgerError("Failed to access wallet", cause=e)

        pending = sum(
            (to_money((s.get("jobs") or {}).get("payment_amount")) for s in submissions),
            Decimal("0.00"),
        )
        return WalletSummary(available=available, pending=pending, total_earned=total_earned)

    def has_submission_credit(self, submission_id: str) -> bool:
        res = self.db.table("ledger")\
            .select("id")\
            .eq("submission_id", submission_id)\
            .eq("type", CREDIT)\
            .limit(1)\
            .execute()
        return bool(res.data)

    def _append(self, user_id: str, amount: Decimal, kind: str,
                submission_id: Optional[str] = None) -> Dict:
        row = {"user_id": user_id, "amount": float(to_money(amount)), "type": kind}
        if submission_id:
            row["submission_id"] = submission_id

        try:
            res = self.db.table("ledger").insert(row).execute()
        except Exception as e:
            logger.error(f"Ledger {kind} insert failed (user {user_id}, amount {amount}): {e}", exc_info=True)
            raise LedgerWriteError(f"Failed to record {kind}", cause=e)

        if not res.data:
            raise LedgerWriteError(f"Failed to record {kind}")
        return res.data[0]

    def record_credit(self, user_id: str, amount: Decimal, submission_id: Optional[str] = None) -> Dict:
        return self._append(user_id, amount, CREDIT, submission_id)

    def record_debit(self, user_id: str, amount: Decimal) -> Dict:
        return self._append(user_id, amount, DEBIT)
