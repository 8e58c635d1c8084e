# wsgi.py
import logging
import os

from voicegig import create_app
from voicegig.extensions import socketio

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = create_app()

if __name__ == "__main__":
    socketio.run(
        app,
        debug=os.getenv("FLASK_DEBUG") == "1",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 5000)),
        allow_unsafe_werkzeug=True,
        log_output=True
    )
