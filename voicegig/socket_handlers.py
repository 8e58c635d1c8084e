# voicegig/socket_handlers.py
"""
Realtime wallet/submission events. Each client joins ``user_<id>`` with its
Supabase access token; services push events to that room.
"""
from typing import Any, Dict, Optional
import logging

from flask import request
from flask_jwt_extended import decode_token
from flask_socketio import emit, join_room, leave_room

from voicegig.extensions import socketio

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def emit_to_user(user_id: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
    try:
        socketio.emit(event, payload or {}, to=user_room(user_id))
    except Exception as e:
        # advisory only
        logger.warning(f"Socket emit {event} to {user_id} failed: {e}")


def emit_wallet_updated(user_id: str) -> None:
    emit_to_user(user_id, "wallet_updated", {"reason": "payout"})


def init_socketio(socketio):

    @socketio.on("connect")
    def handle_connect():
        token = request.args.get("token")
        if not token:
            emit("error", {"message": "Authentication token required"})
            return False

        try:
            decoded = decode_token(token)
            user_id = decoded["sub"]
            join_room(user_room(user_id))
            emit("connected", {"message": "Real-time connected", "user_id": user_id})
            logger.info(f"User {user_id} connected via socket")
        except Exception as e:
            logger.error(f"Socket connect authentication failed: {str(e)}", exc_info=True)
            emit("error", {"message": "Authentication failed"})
            return False

    @socketio.on("leave")
    def handle_leave(data):
        user_id = (data or {}).get("user_id")
        if user_id:
            leave_room(user_room(user_id))

    @socketio.on("disconnect")
    def handle_disconnect():
        logger.info("Socket client disconnected")
