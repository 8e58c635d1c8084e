# voicegig/services/submissions.py
from typing import Any, Callable, Dict, Optional
import logging

from voicegig.services.ledger import Ledger, to_money
from voicegig.services.notifications import Notifier, template_for_status
from voicegig.services.supabase_service import SupabaseService, utcnow_iso
from voicegig.utils.exceptions import LedgerWriteError, ValidationError, VoiceGigError

logger = logging.getLogger(__name__)

REVIEW_STATUSES = ("approved", "rejected", "paid")

SUBMISSION_DETAILS = """
    id,
    user_id,
    status,
    jobs!inner (id, title, payment_amount),
    profiles!inner (full_name, email)
"""


class SubmissionNotFound(VoiceGigError):
    status_code = 404


class SubmissionReview:
    """
    Applies a reviewer's decision to a submission. Paying a submission credits
    the worker's ledger once; emails are best-effort and never undo the change.
    """

    def __init__(self, db: SupabaseService, ledger: Ledger, notifier: Notifier,
                 emit: Optional[Callable[[str, str, Dict[str, Any]], None]] = None):
        self.db = db
        self.ledger = ledger
        self.notifier = notifier
        self.emit = emit

    def load(self, submission_id: str) -> Optional[Dict]:
        try:
            res = self.db.table("submissions")\
                .select(SUBMISSION_DETAILS)\
                .eq("id", submission_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Submission lookup failed ({submission_id}): {e}")
            return None
        return res.data if res else None

    def update_status(self, submission_id: str, status: str,
                      rejection_reason: Optional[str] = None) -> Dict[str, Any]:
        if not submission_id or not status:
            raise ValidationError("Missing required fields")
        if status not in REVIEW_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(REVIEW_STATUSES)}")

        submission = self.load(submission_id)
        if not submission:
            raise SubmissionNotFound("Submission not found")

        update = {"status": status, "updated_at": utcnow_iso()}
        if rejection_reason:
            update["rejection_reason"] = rejection_reason

        try:
            self.db.table("submissions").update(update).eq("id", submission_id).execute()
        except Exception as e:
            logger.error(f"Failed to update submission status ({submission_id}): {e}", exc_info=True)
            raise VoiceGigError("Failed to update submission status", cause=e)

        user_id = submission.get("user_id")
        profile = submission.get("profiles") or {}
        job = submission.get("jobs") or {}
        email_data = {"userName": profile.get("full_name"), "jobTitle": job.get("title")}

        if status == "rejected":
            email_data["rejectionReason"] = rejection_reason
        elif status == "paid":
            amount = to_money(job.get("payment_amount"))
            self._credit_submission(user_id, submission_id, amount)
            email_data["amount"] = amount

        self.notifier.notify_status_change(profile.get("email"), template_for_status(status), email_data)

        self._emit(user_id, "submission_status", {"submission_id": submission_id, "status": status})
        if status == "paid":
            self._emit(user_id, "wallet_updated", {"reason": "submission_paid"})

        logger.info(f"Submission {submission_id} marked {status}")
        return {"success": True, "message": f"Submission {status} successfully"}

    def _credit_submission(self, user_id: str, submission_id: str, amount) -> None:
        if self.ledger.has_submission_credit(submission_id):
            logger.warning(f"Submission {submission_id} already credited; skipping ledger entry")
            return
        try:
            self.ledger.record_credit(user_id, amount, submission_id=submission_id)
        except LedgerWriteError as e:
            logger.error(f"Failed to add payment to ledger (submission {submission_id})")
            raise LedgerWriteError("Failed to process payment", cause=e)

    def _emit(self, user_id: Optional[str], event: str, payload: Dict[str, Any]) -> None:
        if self.emit and user_id:
            self.emit(user_id, event, payload)
