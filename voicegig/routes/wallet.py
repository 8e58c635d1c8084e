# voicegig/routes/wallet.py
from typing import Dict

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from voicegig.services import get_ledger
from voicegig.services.supabase_service import get_supabase
from voicegig.utils.exceptions import VoiceGigError

bp = Blueprint("wallet", __name__, url_prefix="/api/wallet")


def parse_pagination() -> Dict[str, int]:
    """Extract safe pagination params"""
    try:
        page = max(int(request.args.get("page", 1)), 1)
        per_page = min(max(int(request.args.get("per_page", 20)), 1), 100)
    except (TypeError, ValueError):
        page, per_page = 1, 20
    return {"page": page, "per_page": per_page}


def paginated(table: str, user_id: str, select: str):
    p = parse_pagination()
    from_idx = (p["page"] - 1) * p["per_page"]
    to_idx = from_idx + p["per_page"] - 1

    res = get_supabase().table(table)\
        .select(select, count="exact")\
        .eq("user_id", user_id)\
        .order("created_at", desc=True)\
        .range(from_idx, to_idx)\
        .execute()

    rows = res.data or []
    total = res.count or 0
    return rows, {
        **p,
        "total": total,
        "has_more": (p["page"] * p["per_page"]) < total,
    }


# ────────────────────────────────────────────────
# GET /api/wallet/balance
# Available / pending / total earned for the current user
# ────────────────────────────────────────────────
@bp.route("/balance", methods=["GET"])
@jwt_required()
def balance():
    user_id = get_jwt_identity()
    try:
        return jsonify(get_ledger().wallet_summary(user_id).to_dict()), 200
    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code


# ────────────────────────────────────────────────
# GET /api/wallet/payouts
# Payout history (newest first)
# ────────────────────────────────────────────────
@bp.route("/payouts", methods=["GET"])
@jwt_required()
def payouts():
    user_id = get_jwt_identity()
    try:
        rows, page_info = paginated(
            "payouts", user_id,
            "id, amount, status, payout_method, payout_email, payout_id, created_at",
        )
        return jsonify({"payouts": rows, **page_info}), 200
    except Exception as e:
        current_app.logger.error(f"List payouts failed (user {user_id}): {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to load payouts"}), 500


# ────────────────────────────────────────────────
# GET /api/wallet/ledger
# Raw ledger entries (newest first)
# ────────────────────────────────────────────────
@bp.route("/ledger", methods=["GET"])
@jwt_required()
def ledger_entries():
    user_id = get_jwt_identity()
    try:
        rows, page_info = paginated("ledger", user_id, "id, submission_id, amount, type, created_at")
        return jsonify({"entries": rows, **page_info}), 200
    except Exception as e:
        current_app.logger.error(f"List ledger failed (user {user_id}): {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to load ledger"}), 500
