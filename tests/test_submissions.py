"""Tests for reviewer status changes on submissions."""
from unittest.mock import Mock

import httpx
import pytest

from voicegig.services.mailer import ResendMailer
from voicegig.utils.exceptions import EmailDeliveryError
from tests.conftest import ADMIN_ID, USER_ID, credit


@pytest.fixture
def submission(fake_db):
    row = {
        "id": "sub-1",
        "user_id": USER_ID,
        "job_id": "job-1",
        "status": "submitted",
        "jobs": {"id": "job-1", "title": "Read a bedtime story", "payment_amount": 25},
        "profiles": {"full_name": "Wendy Worker", "email": "worker@example.com"},
    }
    fake_db.tables["submissions"].append(row)
    return row


@pytest.fixture
def mailer(app):
    """Swap the notifier's mailer for a mock."""
    from voicegig.services import get_notifier

    with app.app_context():
        notifier = get_notifier()
    notifier.mailer = Mock()
    notifier.mailer.send.return_value = {"id": "email-1"}
    return notifier.mailer


def post_status(client, auth_headers, user_id=ADMIN_ID, **body):
    return client.post("/api/submissions/update-status", json=body, headers=auth_headers(user_id))


class TestUpdateStatusAuth:

    def test_requires_token(self, client):
        resp = client.post("/api/submissions/update-status", json={"submissionId": "sub-1", "status": "paid"})
        assert resp.status_code == 401

    def test_requires_admin(self, client, auth_headers, submission):
        resp = post_status(client, auth_headers, user_id=USER_ID, submissionId="sub-1", status="paid")
        assert resp.status_code == 403
        assert resp.get_json() == {"error": "Admin access required"}


class TestUpdateStatus:

    def test_missing_fields(self, client, auth_headers):
        resp = post_status(client, auth_headers, submissionId="sub-1")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing required fields"}

    def test_invalid_status(self, client, auth_headers, submission):
        resp = post_status(client, auth_headers, submissionId="sub-1", status="archived")
        assert resp.status_code == 400

    def test_unknown_submission(self, client, auth_headers):
        resp = post_status(client, auth_headers, submissionId="nope", status="approved")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Submission not found"}

    def test_approve_sends_email(self, client, auth_headers, submission, fake_db, mailer):
        resp = post_status(client, auth_headers, submissionId="sub-1", status="approved")

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "message": "Submission approved successfully"}
        assert fake_db.rows("submissions", id="sub-1")[0]["status"] == "approved"
        assert fake_db.rows("ledger") == []

        to, subject, html = mailer.send.call_args[0]
        assert to == "worker@example.com"
        assert subject == '🎉 Your submission for "Read a bedtime story" has been approved!'
        assert "Hi Wendy Worker," in html

    def test_reject_stores_reason_and_emails_it(self, client, auth_headers, submission, fake_db, mailer):
        resp = post_status(
            client, auth_headers, submissionId="sub-1", status="rejected",
            rejectionReason="Background noise is too loud",
        )

        assert resp.status_code == 200
        row = fake_db.rows("submissions", id="sub-1")[0]
        assert row["status"] == "rejected"
        assert row["rejection_reason"] == "Background noise is too loud"

        _, subject, html = mailer.send.call_args[0]
        assert subject == 'Your submission for "Read a bedtime story" needs revision'
        assert "Background noise is too loud" in html

    def test_paid_credits_ledger(self, client, auth_headers, submission, fake_db, mailer):
        resp = post_status(client, auth_headers, submissionId="sub-1", status="paid")

        assert resp.status_code == 200
        entries = fake_db.rows("ledger", user_id=USER_ID)
        assert len(entries) == 1
        assert entries[0]["type"] == "credit"
        assert entries[0]["amount"] == 25.0
        assert entries[0]["submission_id"] == "sub-1"

        _, subject, html = mailer.send.call_args[0]
        assert subject == '💰 Payment processed for "Read a bedtime story"'
        assert "$25.00" in html

    def test_paying_twice_credits_once(self, client, auth_headers, submission, fake_db, mailer):
        post_status(client, auth_headers, submissionId="sub-1", status="paid")
        resp = post_status(client, auth_headers, submissionId="sub-1", status="paid")

        assert resp.status_code == 200
        assert len(fake_db.rows("ledger", submission_id="sub-1")) == 1

    def test_ledger_failure_on_paid(self, client, auth_headers, submission, fake_db, mailer):
        fake_db.fail("ledger", "insert")

        resp = post_status(client, auth_headers, submissionId="sub-1", status="paid")

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to process payment"}
        mailer.send.assert_not_called()

    def test_status_update_failure(self, client, auth_headers, submission, fake_db):
        fake_db.fail("submissions", "update")
        resp = post_status(client, auth_headers, submissionId="sub-1", status="approved")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to update submission status"}

    def test_email_failure_does_not_roll_back(self, client, auth_headers, submission, fake_db, mailer):
        mailer.send.side_effect = EmailDeliveryError("Resend API error: 500 - boom")

        resp = post_status(client, auth_headers, submissionId="sub-1", status="paid")

        assert resp.status_code == 200
        assert fake_db.rows("submissions", id="sub-1")[0]["status"] == "paid"
        assert len(fake_db.rows("ledger", submission_id="sub-1")) == 1

    def test_no_email_without_recipient_details(self, client, auth_headers, submission, mailer):
        submission_profile = submission["profiles"]
        submission_profile["email"] = None

        resp = post_status(client, auth_headers, submissionId="sub-1", status="approved")

        assert resp.status_code == 200
        mailer.send.assert_not_called()

    def test_paid_submission_shows_in_balance(self, client, auth_headers, submission, fake_db, mailer):
        credit(fake_db, 5)
        post_status(client, auth_headers, submissionId="sub-1", status="paid")

        resp = client.get("/api/wallet/balance", headers=auth_headers())
        assert resp.get_json()["available"] == 30.0
        assert resp.get_json()["total_earned"] == 25.0


class TestTestEmailRoute:

    def test_runs_status_change(self, client, submission, fake_db, mailer):
        resp = client.post("/api/test-email", json={"submissionId": "sub-1", "status": "approved"})

        assert resp.status_code == 200
        assert resp.get_json()["result"]["success"] is True
        assert mailer.send.called

    def test_disabled_outside_dev(self, app, client):
        app.config["ENABLE_TEST_ROUTES"] = False
        resp = client.post("/api/test-email", json={"submissionId": "sub-1", "status": "approved"})
        assert resp.status_code == 404


class TestStatusEmailIsBestEffort:

    @pytest.fixture
    def notifier(self, app):
        from voicegig.services import get_notifier

        with app.app_context():
            return get_notifier()

    def test_non_json_resend_reply_keeps_status_change(self, client, auth_headers, submission, fake_db, notifier):
        http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK")))
        notifier.mailer = ResendMailer("re_key", "VoiceGig <noreply@theliva.ai>", http=http)

        resp = post_status(client, auth_headers, submissionId="sub-1", status="approved")

        assert resp.status_code == 200
        assert fake_db.rows("submissions", id="sub-1")[0]["status"] == "approved"

    def test_unexpected_mailer_error_keeps_payment(self, client, auth_headers, submission, fake_db, notifier):
        notifier.mailer = Mock()
        notifier.mailer.send.side_effect = RuntimeError("template blew up")

        resp = post_status(client, auth_headers, submissionId="sub-1", status="paid")

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "message": "Submission paid successfully"}
        assert len(fake_db.rows("ledger", submission_id="sub-1")) == 1
