# voicegig/__init__.py
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
import logging

from voicegig.config import Config
from voicegig.extensions import cors, jwt, limiter, socketio

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # ── Secure Config ────────────────────────────────────────────────────
    if not app.config.get("JWT_SECRET_KEY"):
        raise ValueError("SUPABASE_JWT_SECRET not set in .env")

    # CORS – explicit and safe
    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config["FRONTEND_ORIGINS"],
            "supports_credentials": True,
            "allow_headers": ["Content-Type", "Authorization", "X-Webhook-Secret"],
            "expose_headers": ["Authorization"],
            "methods": ["GET", "POST", "OPTIONS"]
        }
    })

    jwt.init_app(app)
    limiter.init_app(app)

    # SocketIO (Redis message queue when several workers share rooms)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config["FRONTEND_ORIGINS"],
        async_mode="threading",
        message_queue=app.config.get("REDIS_URL") or None,
        logger=False,
        engineio_logger=False
    )

    from voicegig.socket_handlers import init_socketio
    init_socketio(socketio)

    # ── Register Blueprints ──────────────────────────────────────────────
    from voicegig.routes.paypal import bp as paypal_bp
    from voicegig.routes.stripe_connect import bp as stripe_bp
    from voicegig.routes.submissions import bp as submissions_bp
    from voicegig.routes.email import bp as email_bp
    from voicegig.routes.wallet import bp as wallet_bp

    for blueprint in (paypal_bp, stripe_bp, submissions_bp, email_bp, wallet_bp):
        app.register_blueprint(blueprint)
        logger.info(f"Registered {blueprint.name} blueprint ({blueprint.url_prefix}/*)")

    # ── Health check endpoint ────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({
            "status": "ok",
            "blueprints_loaded": list(app.blueprints.keys())
        }), 200

    # ── JWT errors as JSON ───────────────────────────────────────────────
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": "Authentication required"}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": "Invalid token"}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Token expired"}), 401

    # ── Global error handler ─────────────────────────────────────────────
    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code

        logger.exception("Unhandled exception occurred")
        return jsonify({"error": "Internal server error"}), 500

    return app
