# voicegig/config.py
import os
from datetime import timedelta
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # ── Supabase ─────────────────────────────────────────────────────────
    SUPABASE_URL = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Supabase Auth signs access tokens with the project JWT secret (HS256)
    JWT_SECRET_KEY = os.getenv("SUPABASE_JWT_SECRET")
    JWT_DECODE_AUDIENCE = "authenticated"
    JWT_IDENTITY_CLAIM = "sub"
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    SECRET_KEY = os.getenv("SECRET_KEY") or os.urandom(24).hex()

    # ── Payments ─────────────────────────────────────────────────────────
    PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID")
    PAYPAL_SECRET = os.getenv("PAYPAL_SECRET")
    PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    MIN_PAYOUT_AMOUNT = Decimal(os.getenv("MIN_PAYOUT_AMOUNT", "5.00"))
    PAYOUT_CURRENCY = "USD"

    # ── Email ────────────────────────────────────────────────────────────
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "VoiceGig <noreply@theliva.ai>")
    WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET")

    # ── Frontend / infra ─────────────────────────────────────────────────
    SITE_URL = os.getenv("SITE_URL") or os.getenv("NEXT_PUBLIC_SITE_URL", "http://localhost:3000")
    FRONTEND_ORIGINS = [
        origin.strip()
        for origin in os.getenv("FRONTEND_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    REDIS_URL = os.getenv("REDIS_URL", "")
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL") or "memory://"
    ENABLE_TEST_ROUTES = _env_bool("ENABLE_TEST_ROUTES")
