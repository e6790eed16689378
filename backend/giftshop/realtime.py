# Overview: Socket.IO handlers; bridges live connections onto the Notifier's rooms.

"""
Client -> server events:
- join_order <orderId>        watch one order (status updates, chat)
- leave_order <orderId>
- join_admin [{"token": ...}] admin console feed (token checked when
                              REALTIME_ADMIN_AUTH is enabled)
- customer_join <email>       per-customer feed
- send_message {orderId, senderType, senderEmail, message}

Server -> client events are Notifier events, emitted with the event type as
the Socket.IO event name and {type, payload, timestamp} as data.
"""

from __future__ import annotations

import logging

from flask import current_app, request
from flask_socketio import emit

from .errors import AuthError, ShopError
from .extensions import socketio
from .services import chat_service, session_service
from .services import notification_service as notify
from .validation import coerce_integer


log = logging.getLogger(__name__)


class SocketSubscriber:
    """Notifier subscriber backed by one Socket.IO connection."""

    def __init__(self, sid: str):
        self.key = sid

    def deliver(self, event: notify.Event) -> None:
        socketio.emit(event.type, event.to_dict(), to=self.key)


def _reject(message: str) -> dict:
    emit(notify.EVENT_JOIN_ERROR, {"error": message})
    return {"ok": False, "error": message}


@socketio.on("connect")
def on_connect(auth=None):
    notify.get_notifier().connect(SocketSubscriber(request.sid))
    log.debug("User connected: %s", request.sid)


@socketio.on("disconnect")
def on_disconnect(*args):
    notify.get_notifier().disconnect(request.sid)
    log.debug("User disconnected: %s", request.sid)


@socketio.on("join_order")
def on_join_order(order_id):
    try:
        order_id = coerce_integer("orderId", order_id)
    except ShopError as e:
        return _reject(str(e))
    notify.get_notifier().join(request.sid, notify.order_room(order_id))
    return {"ok": True, "room": notify.order_room(order_id)}


@socketio.on("leave_order")
def on_leave_order(order_id):
    try:
        order_id = coerce_integer("orderId", order_id)
    except ShopError as e:
        return _reject(str(e))
    notify.get_notifier().leave(request.sid, notify.order_room(order_id))
    return {"ok": True}


@socketio.on("join_admin")
def on_join_admin(data=None):
    if current_app.config["REALTIME_ADMIN_AUTH"]:
        token = data.get("token") if isinstance(data, dict) else None
        try:
            session_service.require_session(token)
        except AuthError as e:
            return _reject(str(e))
    notify.get_notifier().join(request.sid, notify.ADMIN_ROOM)
    return {"ok": True, "room": notify.ADMIN_ROOM}


@socketio.on("customer_join")
def on_customer_join(email):
    if not isinstance(email, str) or not email.strip():
        return _reject("email is required")
    room = notify.customer_room(email)
    notify.get_notifier().join(request.sid, room)
    return {"ok": True, "room": room}


@socketio.on("send_message")
def on_send_message(data):
    """Persist a chat line; the broadcast itself comes from chat_service."""
    data = data if isinstance(data, dict) else {}
    try:
        msg = chat_service.post_message(
            data.get("orderId"),
            data.get("senderType"),
            data.get("senderEmail"),
            data.get("message"),
        )
    except ShopError as e:
        emit(notify.EVENT_CHAT_ERROR, {"error": str(e)})
        return {"ok": False, "error": str(e)}
    except Exception:
        current_app.logger.exception("Failed to store chat message")
        emit(notify.EVENT_CHAT_ERROR, {"error": "Internal server error"})
        return {"ok": False, "error": "Internal server error"}
    return {"ok": True, "id": msg.id}
