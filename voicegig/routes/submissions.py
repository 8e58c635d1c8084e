# voicegig/routes/submissions.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from voicegig.extensions import limiter
from voicegig.services import get_notifier, get_review
from voicegig.utils.decorators import admin_required, webhook_secret_required
from voicegig.utils.exceptions import EmailDeliveryError, VoiceGigError

bp = Blueprint("submissions", __name__, url_prefix="/api/submissions")


# ────────────────────────────────────────────────
# POST /api/submissions/update-status
# Reviewer approves / rejects / pays a submission
# ────────────────────────────────────────────────
@bp.route("/update-status", methods=["POST"])
@jwt_required()
@admin_required
def update_status():
    data = request.get_json(silent=True) or {}
    submission_id = data.get("submissionId")
    status = data.get("status")

    if not submission_id or not status:
        return jsonify({"error": "Missing required fields"}), 400

    try:
        result = get_review().update_status(submission_id, status, data.get("rejectionReason"))
        return jsonify(result), 200

    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Update status error (submission {submission_id}): {str(e)}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


# ────────────────────────────────────────────────
# POST /api/submissions/webhook
# Database webhook on notification_log inserts → send the status email
# ────────────────────────────────────────────────
@bp.route("/webhook", methods=["POST"])
@webhook_secret_required
@limiter.limit("60 per minute")
def status_webhook():
    payload = request.get_json(silent=True) or {}

    try:
        result = get_notifier().deliver_from_webhook(payload)
    except EmailDeliveryError as e:
        return jsonify({"error": "Failed to send email", "details": e.message}), 500
    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.error(f"Webhook email error: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to send email notification"}), 500

    if result is None:
        return jsonify({"success": True, "message": "No email needed for this status"}), 200

    return jsonify({
        "success": True,
        "message": "Email notification sent successfully",
        "emailId": result.get("id"),
    }), 200
