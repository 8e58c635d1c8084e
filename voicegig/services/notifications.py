# voicegig/services/notifications.py
"""
Submission status emails.

Each template has a subject line and a Jinja HTML body under
``templates/emails/<template>.html``. The body context is always
``user_name``, ``job_title``, ``amount`` and ``rejection_reason``.
"""

from typing import Any, Dict, Optional, Tuple
import logging

from flask import render_template

from voicegig.services.ledger import to_money
from voicegig.services.mailer import ResendMailer
from voicegig.services.supabase_service import SupabaseService, utcnow_iso
from voicegig.utils.exceptions import EmailDeliveryError, ValidationError, VoiceGigError

logger = logging.getLogger(__name__)

SUBJECTS = {
    "submission_approved": '🎉 Your submission for "{job_title}" has been approved!',
    "submission_rejected": 'Your submission for "{job_title}" needs revision',
    "submission_paid": '💰 Payment processed for "{job_title}"',
}

STATUS_TEMPLATES = {
    "approved": "submission_approved",
    "rejected": "submission_rejected",
    "paid": "submission_paid",
}


def template_for_status(status: Optional[str]) -> Optional[str]:
    return STATUS_TEMPLATES.get(status or "")


def render_email(template: str, data: Dict[str, Any]) -> Tuple[str, str]:
    if template not in SUBJECTS:
        raise ValidationError(f"Unknown email template: {template}")

    amount = data.get("amount")
    if amount not in (None, ""):
        try:
            amount = float(to_money(amount))
        except ValueError:
            raise ValidationError(f"Invalid payment amount: {amount!r}")
    else:
        amount = None

    context = {
        "user_name": data.get("userName") or "there",
        "job_title": data.get("jobTitle") or "",
        "amount": amount,
        "rejection_reason": (data.get("rejectionReason") or "").strip(),
    }
    subject = SUBJECTS[template].format(job_title=context["job_title"])
    html = render_template(f"emails/{template}.html", **context)
    return subject, html


class Notifier:
    def __init__(self, db: SupabaseService, mailer: ResendMailer):
        self.db = db
        self.mailer = mailer

    def send(self, to: str, template: str, data: Dict[str, Any]) -> Dict[str, Any]:
        subject, html = render_email(template, data)
        logger.info(f"Sending {template} email to {to}")
        return self.mailer.send(to, subject, html)

    def notify_status_change(self, to: Optional[str], template: str, data: Dict[str, Any]) -> bool:
        """Best-effort: a failed email is logged and never retried."""
        if not (to and data.get("userName") and data.get("jobTitle")):
            logger.info(f"Skipping {template} email: missing recipient details")
            return False
        try:
            self.send(to, template, data)
            return True
        except EmailDeliveryError as e:
            logger.error(f"Failed to send {template} notification to {to}: {e.message}")
            return False
        except Exception:
            logger.error(f"Unexpected error sending {template} notification to {to}", exc_info=True)
            return False

    def deliver_from_webhook(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Handle a notification_log database webhook. Returns the mailer result,
        or None when the status has no email. Delivery outcome is written back
        to notification_log; failures re-raise after logging.
        """
        submission_id = payload.get("submissionId")
        status = payload.get("status")
        to = payload.get("userEmail")
        if not submission_id or not status or not to:
            raise ValidationError("Missing required fields")

        template = template_for_status(status)
        if template is None:
            return None

        data = {
            "userName": payload.get("userName"),
            "jobTitle": payload.get("jobTitle"),
            "amount": payload.get("paymentAmount"),
            "rejectionReason": payload.get("rejectionReason"),
        }
        log_filter = {"submission_id": submission_id, "status": status}

        try:
            result = self.send(to, template, data)
        except VoiceGigError as e:
            logger.error(f"Email sending failed for submission {submission_id}: {e.message}")
            self.db.update_where("notification_log", log_filter, {"error_message": e.message})
            raise
        except Exception as e:
            logger.error(f"Email sending failed for submission {submission_id}", exc_info=True)
            self.db.update_where("notification_log", log_filter, {"error_message": str(e)})
            raise

        self.db.update_where("notification_log", log_filter, {"sent_at": utcnow_iso(), "error_message": None})
        return result
