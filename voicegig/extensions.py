# voicegig/extensions.py
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_socketio import SocketIO

cors = CORS()
jwt = JWTManager()

# Storage comes from RATELIMIT_STORAGE_URI (Redis in production)
limiter = Limiter(key_func=get_remote_address)

socketio = SocketIO()
