# backend/wsgi.py
import os

from giftshop import create_app
from giftshop.extensions import socketio

app = create_app()


if __name__ == "__main__":
    try:
        socketio.run(
            app,
            host=os.environ.get("HOST", "127.0.0.1"),
            port=int(os.environ.get("PORT", "5000")),
            allow_unsafe_werkzeug=True,
        )
    finally:
        app.extensions["notifier"].close()
