"""
Pytest configuration and shared fixtures for the VoiceGig backend tests.
"""
from decimal import Decimal
from unittest.mock import Mock
import logging

import pytest
from flask_jwt_extended import create_access_token

from voicegig import create_app
from voicegig.services.paypal_service import PayoutBatch
from voicegig.services.supabase_service import SupabaseService
from tests.fixtures.fake_supabase import FakeSupabase

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

USER_ID = "user-1"
ADMIN_ID = "admin-1"

TEST_CONFIG = {
    "TESTING": True,
    "JWT_SECRET_KEY": "test-supabase-jwt-secret-with-enough-length",
    "JWT_ENCODE_AUDIENCE": "authenticated",
    "RATELIMIT_ENABLED": False,
    "REDIS_URL": "",
    "SITE_URL": "http://localhost:3000",
    "MIN_PAYOUT_AMOUNT": Decimal("5.00"),
    "RESEND_API_KEY": None,
    "WEBHOOK_SECRET": None,
    "ENABLE_TEST_ROUTES": True,
}


@pytest.fixture
def fake_db():
    """Fake Supabase with one worker, one reviewer and one job."""
    return FakeSupabase({
        "profiles": [
            {"id": USER_ID, "email": "worker@example.com", "full_name": "Wendy Worker",
             "paypal_email": "worker@paypal.test", "stripe_account_id": None},
        ],
        "admins": [{"id": ADMIN_ID, "admin_level": 1}],
        "jobs": [{"id": "job-1", "title": "Read a bedtime story", "payment_amount": 25}],
        "ledger": [],
        "payouts": [],
        "submissions": [],
        "notification_log": [],
    })


@pytest.fixture
def db(fake_db):
    return SupabaseService(None, None, client=fake_db)


@pytest.fixture
def paypal():
    client = Mock()
    client.create_payout.return_value = PayoutBatch(
        payout_batch_id="PAYPAL-BATCH-1", batch_status="PENDING", raw={}
    )
    return client


@pytest.fixture
def stripe_connect():
    client = Mock()
    client.is_configured = True
    client.transfer.return_value = "tr_123"
    return client


@pytest.fixture
def app(db, paypal, stripe_connect):
    app = create_app(TEST_CONFIG)
    app.extensions["supabase"] = db
    app.extensions["paypal"] = paypal
    app.extensions["stripe"] = stripe_connect
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def make(user_id=USER_ID):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return make


def credit(fake_db, amount, user_id=USER_ID, submission_id=None):
    fake_db.table("ledger").insert({
        "user_id": user_id, "amount": amount, "type": "credit", "submission_id": submission_id,
    }).execute()


def debit(fake_db, amount, user_id=USER_ID):
    fake_db.table("ledger").insert({"user_id": user_id, "amount": amount, "type": "debit"}).execute()
