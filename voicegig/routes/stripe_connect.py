# voicegig/routes/stripe_connect.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
import stripe

from voicegig.extensions import limiter
from voicegig.services import get_payouts, get_stripe
from voicegig.services.payouts import parse_amount
from voicegig.services.supabase_service import get_supabase
from voicegig.utils.exceptions import VoiceGigError

bp = Blueprint("stripe", __name__, url_prefix="/api/stripe")


# ────────────────────────────────────────────────
# POST /api/stripe/connect-onboard-link
# Create (or reuse) the user's Express account and return an onboarding URL
# ────────────────────────────────────────────────
@bp.route("/connect-onboard-link", methods=["POST"])
@jwt_required()
@limiter.limit("10 per minute")
def connect_onboard_link():
    user_id = get_jwt_identity()
    connect = get_stripe()
    if not connect.is_configured:
        return jsonify({"error": "Stripe is not configured"}), 503

    db = get_supabase()
    profile = db.get_profile(user_id, select="id, email, stripe_account_id")
    if not profile:
        return jsonify({"error": "Profile not found"}), 404

    try:
        account_id = profile.get("stripe_account_id")
        if not account_id:
            account_id = connect.create_account(profile.get("email"), user_id)
            if not db.update_profile(user_id, {"stripe_account_id": account_id}):
                current_app.logger.error(f"Failed to store Stripe account {account_id} for {user_id}")
                return jsonify({"error": "Failed to save Stripe account"}), 500

        profile_url = f"{current_app.config['SITE_URL'].rstrip('/')}/dashboard/profile"
        url = connect.onboarding_link(
            account_id,
            refresh_url=f"{profile_url}?stripe=refresh",
            return_url=f"{profile_url}?stripe=connected",
        )
        return jsonify({"url": url, "account_id": account_id}), 200

    except stripe.StripeError as e:
        current_app.logger.error(f"Stripe onboarding error (user {user_id}): {str(e)}")
        return jsonify({"error": "Failed to create onboarding link"}), 502


# ────────────────────────────────────────────────
# GET /api/stripe/account
# Connected account status for the profile page
# ────────────────────────────────────────────────
@bp.route("/account", methods=["GET"])
@jwt_required()
def account_status():
    user_id = get_jwt_identity()
    profile = get_supabase().get_profile(user_id, select="stripe_account_id")
    account_id = (profile or {}).get("stripe_account_id")
    if not account_id:
        return jsonify({"account": None}), 200

    try:
        return jsonify({"account": get_stripe().account_status(account_id)}), 200
    except stripe.StripeError as e:
        current_app.logger.error(f"Stripe account lookup failed ({account_id}): {str(e)}")
        return jsonify({"error": "Failed to load Stripe account"}), 502


# ────────────────────────────────────────────────
# POST /api/stripe/payout
# Withdraw wallet balance to the connected Stripe account
# ────────────────────────────────────────────────
@bp.route("/payout", methods=["POST"])
@jwt_required()
@limiter.limit("5 per minute")
def payout():
    user_id = get_jwt_identity()
    data = request.get_json(silent=True) or {}

    if not data.get("amount"):
        return jsonify({"error": "Missing required fields"}), 400

    profile = get_supabase().get_profile(user_id, select="stripe_account_id")
    account_id = (profile or {}).get("stripe_account_id")
    if not account_id:
        return jsonify({"error": "Connect a Stripe account first"}), 400

    try:
        amount = parse_amount(data["amount"], current_app.config["MIN_PAYOUT_AMOUNT"])
        result = get_payouts().stripe_payout(
            get_stripe(), user_id, amount, account_id,
            currency=current_app.config["PAYOUT_CURRENCY"],
        )
        return jsonify(result.to_dict()), 200

    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Stripe payout error (user {user_id}): {str(e)}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500
