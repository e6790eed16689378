# Overview: Read-side reconstruction of an order's tracking timeline.

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import Order, TrackingEvent


def _find_by_tracking_code(tracking_code: str) -> Order:
    code = (tracking_code or "").strip()
    order = db.session.query(Order).filter_by(tracking_code=code).first() if code else None
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_tracking_history(tracking_code: str) -> tuple[Order, list[dict]]:
    """
    Order plus its tracking events, newest first.

    Events sharing a timestamp keep insertion order (higher id is newer).
    An order with no events yields an empty list: orders written before the
    initial event became part of the same transaction may have none.
    """
    order = _find_by_tracking_code(tracking_code)
    events = (
        db.session.query(TrackingEvent)
        .filter_by(order_id=order.id)
        .order_by(TrackingEvent.created_at.desc(), TrackingEvent.id.desc())
        .all()
    )
    return order, [e.to_dict() for e in events]


def get_timeline(order_id: int) -> list[dict]:
    """Chronological narrative (oldest first) for one order."""
    events = (
        db.session.query(TrackingEvent)
        .filter_by(order_id=order_id)
        .order_by(TrackingEvent.created_at.asc(), TrackingEvent.id.asc())
        .all()
    )
    return [e.to_dict() for e in events]
