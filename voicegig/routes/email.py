# voicegig/routes/email.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from voicegig.extensions import limiter
from voicegig.services import get_notifier, get_review
from voicegig.services.notifications import SUBJECTS
from voicegig.utils.decorators import admin_required, dev_only
from voicegig.utils.exceptions import EmailDeliveryError, ValidationError, VoiceGigError

bp = Blueprint("email", __name__, url_prefix="/api")


# ────────────────────────────────────────────────
# POST /api/send-email
# Render one of the submission templates and send it
# ────────────────────────────────────────────────
@bp.route("/send-email", methods=["POST"])
@jwt_required()
@admin_required
@limiter.limit("30 per minute")
def send_email():
    data = request.get_json(silent=True) or {}
    to = data.get("to")
    template = data.get("template")

    if not to or template not in SUBJECTS:
        return jsonify({"error": "Missing required fields or invalid template"}), 400

    try:
        get_notifier().send(to, template, data.get("data") or {})
        return jsonify({"success": True, "message": "Email sent successfully"}), 200
    except ValidationError as e:
        return jsonify(e.to_dict()), e.status_code
    except EmailDeliveryError as e:
        current_app.logger.error(f"Email sending error ({template} → {to}): {e.message}")
        return jsonify({"error": "Failed to send email"}), 500


# ────────────────────────────────────────────────
# POST /api/test-email
# Local only: run a status change end to end
# ────────────────────────────────────────────────
@bp.route("/test-email", methods=["POST"])
@dev_only
def test_email():
    data = request.get_json(silent=True) or {}
    submission_id = data.get("submissionId")
    status = data.get("status")

    if not submission_id or not status:
        return jsonify({"error": "Missing submissionId or status"}), 400

    current_app.logger.info(f"Testing email notification: {submission_id} → {status}")
    try:
        result = get_review().update_status(submission_id, status, data.get("rejectionReason"))
    except VoiceGigError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({"success": True, "message": "Test email sent successfully", "result": result}), 200
