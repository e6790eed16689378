# Overview: Real-time fan-out hub; routes already-persisted facts to live subscribers.

"""
Notifier - process-wide room registry

WHY: Orders and chat messages are persisted first; the notifier only tells
whoever is currently listening. It owns no storage of its own.

ROOMS:
- order_<id>          customer(s) and admins watching one order
- admin_room          every connected admin console
- customer_<email>    every tab a customer has open

DELIVERY:
- At-most-once, best-effort. No subscribers -> event dropped.
- No replay: a subscriber joining after an event never receives it.
- A subscriber whose delivery raises is logged and skipped; the rest of the
  fan-out continues.
- Fan-out shape is chosen by the emitting service per event type. The same
  logical event may reach a subscriber twice (e.g. order room + admin room);
  receivers are not deduplicated here.

LIFETIME: One instance per application, created in create_app() and stored in
app.extensions["notifier"]; close() at shutdown drops all memberships.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Protocol

from flask import current_app

from giftshop.time_utils import to_utc_z, utcnow


log = logging.getLogger(__name__)

ADMIN_ROOM = "admin_room"

# Server-originated event types
EVENT_NEW_ORDER = "new_cod_order"
EVENT_NEW_ORDER_ADMIN = "new_cod_order_admin"
EVENT_ORDER_UPDATED = "order_updated"
EVENT_ORDERS_UPDATED = "orders_updated"
EVENT_PAYMENT_RECEIVED = "cod_payment_received"
EVENT_PAYMENT_CONFIRMED = "cod_payment_confirmed"
EVENT_NEW_MESSAGE = "new_message"
EVENT_CHAT_ERROR = "chat_error"
EVENT_JOIN_ERROR = "join_error"


def order_room(order_id: int | str) -> str:
    return f"order_{order_id}"


def customer_room(email: str) -> str:
    return f"customer_{(email or '').strip().lower()}"


@dataclass(frozen=True)
class Event:
    """JSON-shaped notification record."""
    type: str
    payload: dict | None = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "payload": self.payload,
            "timestamp": to_utc_z(self.timestamp),
        }


class Subscriber(Protocol):
    """Anything that can receive events; `key` identifies the connection."""
    key: str

    def deliver(self, event: Event) -> None: ...


class Notifier:
    def __init__(self, logger: logging.Logger | None = None):
        self.log = logger or log
        self._lock = threading.RLock()
        self._subscribers: dict[str, Subscriber] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._memberships: dict[str, set[str]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def connect(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers[subscriber.key] = subscriber
        self.log.debug("Subscriber connected: %s", subscriber.key)

    def disconnect(self, key: str) -> None:
        with self._lock:
            self._subscribers.pop(key, None)
            for room in self._memberships.pop(key, set()):
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(key)
                if not members:
                    del self._rooms[room]
        self.log.debug("Subscriber disconnected: %s", key)

    def join(self, key: str, room: str) -> None:
        with self._lock:
            if key not in self._subscribers:
                raise KeyError(f"Subscriber {key} is not connected")
            self._rooms[room].add(key)
            self._memberships[key].add(room)
        self.log.debug("Subscriber %s joined %s", key, room)

    def leave(self, key: str, room: str) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._rooms[room]
            self._memberships.get(key, set()).discard(room)

    def is_connected(self, key: str) -> bool:
        with self._lock:
            return key in self._subscribers

    def rooms_of(self, key: str) -> set[str]:
        with self._lock:
            return set(self._memberships.get(key, set()))

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def publish(self, room: str, event: Event) -> int:
        """Deliver to every member of one room. Returns the delivery count."""
        with self._lock:
            targets = [self._subscribers[k] for k in self._rooms.get(room, ()) if k in self._subscribers]
        return self._deliver_all(targets, event)

    def publish_many(self, rooms: Iterable[str], event: Event) -> int:
        """Deliver to each room in turn; a member of two rooms receives two copies."""
        return sum(self.publish(room, event) for room in rooms)

    def broadcast(self, event: Event) -> int:
        """Deliver to every connected subscriber."""
        with self._lock:
            targets = list(self._subscribers.values())
        return self._deliver_all(targets, event)

    def _deliver_all(self, targets: list[Subscriber], event: Event) -> int:
        delivered = 0
        for subscriber in targets:
            try:
                subscriber.deliver(event)
                delivered += 1
            except Exception:
                self.log.exception("Failed to deliver %s to %s", event.type, subscriber.key)
        return delivered

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def reset(self) -> None:
        with self._lock:
            self._subscribers.clear()
            self._rooms.clear()
            self._memberships.clear()

    def close(self) -> None:
        self.reset()
        self.log.info("Notifier closed")


def get_notifier() -> Notifier:
    return current_app.extensions["notifier"]


def event(event_type: str, payload: dict[str, Any] | None = None, *, at: datetime | None = None) -> Event:
    return Event(type=event_type, payload=payload, timestamp=at or utcnow())
