# voicegig/routes/paypal.py
from urllib.parse import urlencode

from flask import Blueprint, current_app, jsonify, redirect, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from voicegig.extensions import limiter
from voicegig.services import get_payouts, get_paypal
from voicegig.services.payouts import parse_amount
from voicegig.services.supabase_service import get_supabase
from voicegig.utils.exceptions import VoiceGigError

bp = Blueprint("paypal", __name__, url_prefix="/api/paypal")


def profile_redirect(**params):
    site_url = current_app.config["SITE_URL"].rstrip("/")
    return redirect(f"{site_url}/dashboard/profile?{urlencode(params)}")


# ────────────────────────────────────────────────
# POST /api/paypal/payout
# Withdraw wallet balance to a PayPal email
# ────────────────────────────────────────────────
@bp.route("/payout", methods=["POST"])
@jwt_required()
@limiter.limit("5 per minute")
def payout():
    data = request.get_json(silent=True) or {}
    amount = data.get("amount")
    email = (data.get("email") or "").strip()
    user_id = data.get("user_id")

    if not amount or not email or not user_id:
        return jsonify({"error": "Missing required fields"}), 400

    if str(user_id) != get_jwt_identity():
        current_app.logger.warning(f"Payout for {user_id} requested by {get_jwt_identity()}")
        return jsonify({"error": "You can only withdraw from your own wallet"}), 403

    try:
        amount = parse_amount(amount, current_app.config["MIN_PAYOUT_AMOUNT"])
        result = get_payouts().paypal_payout(
            get_paypal(), user_id, amount, email,
            currency=current_app.config["PAYOUT_CURRENCY"],
        )
        return jsonify(result.to_dict()), 200

    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Payout error (user {user_id}): {str(e)}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


# ────────────────────────────────────────────────
# GET /api/paypal/callback
# "Connect with PayPal" OAuth return (state = user id)
# ────────────────────────────────────────────────
@bp.route("/callback", methods=["GET"])
def oauth_callback():
    code = request.args.get("code")
    user_id = request.args.get("state")

    if not code or not user_id:
        return profile_redirect(error="missing_params")

    paypal = get_paypal()
    try:
        try:
            access_token = paypal.exchange_code(code)
        except VoiceGigError as e:
            current_app.logger.error(f"Failed to exchange PayPal code for tokens: {e.message}")
            return profile_redirect(error="token_exchange")

        try:
            user_info = paypal.get_user_info(access_token)
        except VoiceGigError as e:
            current_app.logger.error(f"Failed to get PayPal user info: {e.message}")
            return profile_redirect(error="user_info")

        updated = get_supabase().update_profile(user_id, {
            "paypal_email": user_info.get("email"),
            "paypal_verified": str(user_info.get("verified_account")).lower() == "true",
            "paypal_account_id": user_info.get("payer_id"),
        })
        if not updated:
            return profile_redirect(error="db_update")

        current_app.logger.info(f"PayPal account connected for user {user_id}")
        return profile_redirect(success="paypal_connected")

    except Exception as e:
        current_app.logger.error(f"Error in PayPal callback: {str(e)}", exc_info=True)
        return profile_redirect(error="server_error")


# ────────────────────────────────────────────────
# GET /api/paypal/login/callback
# Log In with PayPal return: store the verified email
# ────────────────────────────────────────────────
@bp.route("/login/callback", methods=["GET"])
def login_callback():
    user_id = request.args.get("user_id")
    email = request.args.get("email")
    verified = request.args.get("verified") == "true"

    if not user_id or not email:
        current_app.logger.error("PayPal login callback missing required parameters")
        return profile_redirect(error="missing_params")

    try:
        updated = get_supabase().update_profile(user_id, {
            "paypal_email": email,
            "paypal_verified": verified,
        })
        if not updated:
            current_app.logger.error(f"Failed to update profile {user_id} with PayPal email")
            return profile_redirect(error="profile_update_failed")

        return profile_redirect(paypal_connected="true")

    except Exception as e:
        current_app.logger.error(f"PayPal login callback error: {str(e)}", exc_info=True)
        return profile_redirect(error="login_processing_failed")
