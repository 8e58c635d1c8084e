"""Tests for Stripe Connect onboarding, account status and transfers."""
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from voicegig.services.stripe_service import StripeConnect
from voicegig.utils.exceptions import PayoutProviderError
from tests.conftest import USER_ID, credit


class TestStripeConnect:

    @patch("voicegig.services.stripe_service.stripe.Transfer.create")
    def test_transfer_in_cents(self, create):
        create.return_value = SimpleNamespace(id="tr_1")

        transfer_id = StripeConnect("sk_test").transfer(
            Decimal("15.50"), "acct_1", idempotency_key="PAYOUT_1", currency="USD", user_id=USER_ID
        )

        assert transfer_id == "tr_1"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 1550
        assert kwargs["currency"] == "usd"
        assert kwargs["destination"] == "acct_1"
        assert kwargs["idempotency_key"] == "PAYOUT_1"
        assert kwargs["api_key"] == "sk_test"

    @patch("voicegig.services.stripe_service.stripe.Transfer.create")
    def test_transfer_error(self, create):
        create.side_effect = stripe.InvalidRequestError("No such destination", param="destination")

        with pytest.raises(PayoutProviderError) as exc_info:
            StripeConnect("sk_test").transfer(Decimal("5"), "acct_x", idempotency_key="k")
        assert "No such destination" in exc_info.value.message

    @patch("voicegig.services.stripe_service.stripe.Account.retrieve")
    def test_account_status(self, retrieve):
        retrieve.return_value = SimpleNamespace(
            id="acct_1", charges_enabled=True, payouts_enabled=False, details_submitted=True
        )
        assert StripeConnect("sk_test").account_status("acct_1") == {
            "id": "acct_1", "charges_enabled": True, "payouts_enabled": False, "details_submitted": True,
        }


class TestOnboardLink:

    def test_creates_account_once(self, client, auth_headers, stripe_connect, fake_db):
        stripe_connect.create_account.return_value = "acct_new"
        stripe_connect.onboarding_link.return_value = "https://connect.stripe.com/setup/e/acct_new/abc"

        resp = client.post("/api/stripe/connect-onboard-link", headers=auth_headers())

        assert resp.status_code == 200
        assert resp.get_json() == {
            "url": "https://connect.stripe.com/setup/e/acct_new/abc", "account_id": "acct_new",
        }
        stripe_connect.create_account.assert_called_once_with("worker@example.com", USER_ID)
        assert fake_db.rows("profiles", id=USER_ID)[0]["stripe_account_id"] == "acct_new"

        kwargs = stripe_connect.onboarding_link.call_args.kwargs
        assert kwargs["return_url"] == "http://localhost:3000/dashboard/profile?stripe=connected"

        # second call reuses the stored account
        client.post("/api/stripe/connect-onboard-link", headers=auth_headers())
        assert stripe_connect.create_account.call_count == 1

    def test_not_configured(self, client, auth_headers, stripe_connect):
        stripe_connect.is_configured = False
        resp = client.post("/api/stripe/connect-onboard-link", headers=auth_headers())
        assert resp.status_code == 503

    def test_stripe_error(self, client, auth_headers, stripe_connect):
        stripe_connect.create_account.side_effect = stripe.APIConnectionError("network down")
        resp = client.post("/api/stripe/connect-onboard-link", headers=auth_headers())
        assert resp.status_code == 502


class TestAccountRoute:

    def test_no_account(self, client, auth_headers):
        resp = client.get("/api/stripe/account", headers=auth_headers())
        assert resp.get_json() == {"account": None}

    def test_with_account(self, client, auth_headers, stripe_connect, fake_db):
        fake_db.rows("profiles", id=USER_ID)[0]["stripe_account_id"] = "acct_1"
        stripe_connect.account_status.return_value = {"id": "acct_1", "payouts_enabled": True}

        resp = client.get("/api/stripe/account", headers=auth_headers())

        assert resp.get_json() == {"account": {"id": "acct_1", "payouts_enabled": True}}


class TestStripePayoutRoute:

    def test_requires_connected_account(self, client, auth_headers, fake_db):
        credit(fake_db, 50)
        resp = client.post("/api/stripe/payout", json={"amount": 10}, headers=auth_headers())
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Connect a Stripe account first"}

    def test_payout(self, client, auth_headers, fake_db, stripe_connect):
        fake_db.rows("profiles", id=USER_ID)[0]["stripe_account_id"] = "acct_1"
        credit(fake_db, 50)

        resp = client.post("/api/stripe/payout", json={"amount": "10.00"}, headers=auth_headers())

        assert resp.status_code == 200
        assert resp.get_json()["payout_id"] == "tr_123"
        assert len(fake_db.rows("ledger", user_id=USER_ID, type="debit")) == 1

    def test_missing_amount(self, client, auth_headers):
        resp = client.post("/api/stripe/payout", json={}, headers=auth_headers())
        assert resp.status_code == 400
