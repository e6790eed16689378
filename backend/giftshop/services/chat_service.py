# Overview: Per-order customer/admin chat; persist first, then fan out.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import ChatMessage, Order
from ..validation import coerce_integer, validate_sender_role
from . import notification_service as notify
from .identifier_service import Clock
from .transactions import atomic
from giftshop.time_utils import to_utc_z, utcnow


def _message_event_payload(msg: ChatMessage) -> dict:
    return {
        "id": msg.id,
        "orderId": msg.order_id,
        "senderType": msg.sender_type,
        "senderEmail": msg.sender_email,
        "message": msg.message,
        "timestamp": to_utc_z(msg.created_at),
    }


def post_message(
    order_id,
    sender_role: str,
    sender_email: str | None,
    text: str,
    *,
    clock: Clock | None = None,
) -> ChatMessage:
    """
    Store a chat line and re-broadcast it to the order room and admin room.

    No content filtering or rate limiting. The broadcast carries the stored
    id and timestamp.

    Raises:
        ValidationError: Bad order id, sender role, or blank text
        NotFoundError: Order does not exist
    """
    order_id = coerce_integer("orderId", order_id)
    role = validate_sender_role(sender_role)
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("message is required")

    if db.session.get(Order, order_id) is None:
        raise NotFoundError("Order not found")

    msg = ChatMessage(
        order_id=order_id,
        sender_type=role,
        sender_email=(sender_email or None),
        message=text,
        created_at=(clock or utcnow)(),
    )
    with atomic():
        db.session.add(msg)

    try:
        evt = notify.event(notify.EVENT_NEW_MESSAGE, _message_event_payload(msg), at=msg.created_at)
        notify.get_notifier().publish_many([notify.order_room(order_id), notify.ADMIN_ROOM], evt)
    except Exception:
        current_app.logger.exception("Failed to broadcast chat message %s", msg.id)

    return msg


def list_messages(order_id: int) -> list[ChatMessage]:
    """Full conversation for one order, oldest first. No pagination."""
    return (
        db.session.query(ChatMessage)
        .filter_by(order_id=order_id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )
