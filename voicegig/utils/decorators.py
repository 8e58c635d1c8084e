# voicegig/utils/decorators.py
from functools import wraps
import hmac
import logging

from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity

from voicegig.services.supabase_service import get_supabase

logger = logging.getLogger(__name__)


def admin_required(f):
    """
    Decorator: Ensures the current user is a reviewer/admin.
    Checks the 'admins' table (not profiles.role).
    Must be stacked under @jwt_required().
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = get_jwt_identity()
        if not identity:
            return jsonify({"error": "Authentication required"}), 401

        try:
            if not get_supabase().is_admin(identity):
                return jsonify({"error": "Admin access required"}), 403
        except Exception as e:
            logger.error(f"Admin check failed for {identity}: {str(e)}")
            return jsonify({"error": "Failed to verify permissions"}), 500

        return f(*args, **kwargs)

    return decorated_function


def webhook_secret_required(f):
    """
    Decorator: Checks X-Webhook-Secret against WEBHOOK_SECRET.
    Open when no secret is configured (local development).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("WEBHOOK_SECRET")
        if expected:
            provided = request.headers.get("X-Webhook-Secret", "")
            if not hmac.compare_digest(provided.encode(), expected.encode()):
                logger.warning(f"Rejected webhook call from {request.remote_addr}")
                return jsonify({"error": "Invalid webhook secret"}), 401
        return f(*args, **kwargs)

    return decorated_function


def dev_only(f):
    """Decorator: 404 unless ENABLE_TEST_ROUTES is set."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_app.config.get("ENABLE_TEST_ROUTES"):
            return jsonify({"error": "Not found"}), 404
        return f(*args, **kwargs)

    return decorated_function
