# voicegig/services/__init__.py
"""
Per-app service instances, built on first use and cached in
``app.extensions`` so tests can swap any of them out.
"""

from flask import current_app

from voicegig.services.ledger import Ledger
from voicegig.services.locks import PayoutLocks
from voicegig.services.mailer import ResendMailer
from voicegig.services.notifications import Notifier
from voicegig.services.payouts import PayoutService
from voicegig.services.paypal_service import PayPalClient
from voicegig.services.stripe_service import StripeConnect
from voicegig.services.submissions import SubmissionReview
from voicegig.services.supabase_service import get_supabase
from voicegig.socket_handlers import emit_to_user, emit_wallet_updated


def _cached(key, factory):
    service = current_app.extensions.get(key)
    if service is None:
        service = factory()
        current_app.extensions[key] = service
    return service


def get_ledger() -> Ledger:
    return _cached("ledger", lambda: Ledger(get_supabase()))


def get_paypal() -> PayPalClient:
    cfg = current_app.config
    return _cached("paypal", lambda: PayPalClient(
        cfg.get("PAYPAL_CLIENT_ID"), cfg.get("PAYPAL_SECRET"), cfg.get("PAYPAL_MODE", "sandbox")
    ))


def get_stripe() -> StripeConnect:
    return _cached("stripe", lambda: StripeConnect(current_app.config.get("STRIPE_SECRET_KEY")))


def get_notifier() -> Notifier:
    cfg = current_app.config
    return _cached("notifier", lambda: Notifier(
        get_supabase(), ResendMailer(cfg.get("RESEND_API_KEY"), cfg.get("EMAIL_FROM"))
    ))


def get_payouts() -> PayoutService:
    return _cached("payouts", lambda: PayoutService(
        get_supabase(),
        get_ledger(),
        PayoutLocks.from_url(current_app.config.get("REDIS_URL")),
        on_wallet_change=emit_wallet_updated,
    ))


def get_review() -> SubmissionReview:
    return _cached("review", lambda: SubmissionReview(
        get_supabase(), get_ledger(), get_notifier(), emit=emit_to_user
    ))
