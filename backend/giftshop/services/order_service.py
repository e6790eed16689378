# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Lifecycle Service

================================================================================
PURPOSE: Create cash-on-delivery orders, move them through their lifecycle,
and keep the append-only tracking history in step.
================================================================================

STATUS (open label):
    pending -> confirmed -> processing -> shipped -> out_for_delivery -> delivered
    cancelled reachable from any non-terminal stage

    Transitions are NOT enforced. Any non-blank label may be set from any
    prior state; unknown labels are kept verbatim as a custom status and get
    a generic tracking message.

PAYMENT STATUS:
    pending -> paid (one way, repeated confirmation is allowed)

WRITES:
- Every state change and its tracking event commit together (atomic()).
- Notifications go out only after commit. They are best-effort: a failure
  there is logged and never undoes or fails the write.
================================================================================
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, TrackingEvent
from ..validation import (
    CHECKOUT_POLICY,
    enforce_rules_order_total,
    normalize_items,
    validate_payload,
)
from . import notification_service as notify
from .identifier_service import Clock, estimate_delivery, generate_tracking_code
from .transactions import atomic
from giftshop.time_utils import to_iso_date, utcnow


PAYMENT_METHOD_COD = "cash_on_delivery"
PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"

# Tracking history label used for payment confirmations
TRACKING_STATUS_PAID = "paid"

OPTIONAL_ADDRESS_FIELDS = ("address_line2", "landmark", "delivery_instructions")


class OrderStage(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STAGES = {OrderStage.DELIVERED, OrderStage.CANCELLED}

STATUS_MESSAGES = {
    OrderStage.PENDING: "Order received - Payment pending (Cash on Delivery)",
    OrderStage.CONFIRMED: "Order confirmed - Ready for delivery",
    OrderStage.PROCESSING: "Order is being prepared for shipment",
    OrderStage.SHIPPED: "Order has been shipped - Collect payment on delivery",
    OrderStage.OUT_FOR_DELIVERY: "Order is out for delivery - Collect payment",
    OrderStage.DELIVERED: "Order has been delivered",
    OrderStage.CANCELLED: "Order has been cancelled",
}

PAYMENT_MESSAGE_CUSTOMER = "Cash payment received upon delivery"
PAYMENT_MESSAGE_ADMIN = "Cash payment received upon delivery - Order completed"


@dataclass(frozen=True)
class OrderStatus:
    """
    A known lifecycle stage, or a custom label (stage is None).

    Custom labels exist so new stages can be introduced without a code
    change; they are stored and displayed exactly as given.
    """
    label: str
    stage: OrderStage | None = None

    @classmethod
    def parse(cls, raw) -> "OrderStatus":
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("status is required")
        label = raw.strip()
        try:
            return cls(label=label, stage=OrderStage(label))
        except ValueError:
            return cls(label=label, stage=None)

    @property
    def is_custom(self) -> bool:
        return self.stage is None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def message(self) -> str:
        if self.stage is None:
            return f"Order status updated to {self.label}"
        return STATUS_MESSAGES[self.stage]


def _get_order_or_404(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _send(description: str, fn) -> None:
    """Run one fan-out step; failures are logged, never raised."""
    try:
        fn(notify.get_notifier())
    except Exception:
        current_app.logger.exception("Failed to send %s notification", description)


# ================================================================================
# CREATE
# ================================================================================

def create_order(
    data: dict,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> Order:
    """
    Validate checkout input, persist the order with its first tracking event,
    then announce it.

    Args:
        data: Checkout JSON (customer, address, total, items)
        rng: Random source for the tracking suffix and delivery offset
        clock: Returns "now" (UTC-naive)

    Returns:
        The persisted Order

    Raises:
        ValidationError: Missing/blank required field or total < 1
        ConflictError: Tracking code already issued (caller retries)
        StoreError: Any other persistence failure
    """
    patch = validate_payload(model=Order, payload=data, policy=CHECKOUT_POLICY, partial=False)
    enforce_rules_order_total(patch)
    items = normalize_items((data or {}).get("items"))

    for key in OPTIONAL_ADDRESS_FIELDS:
        if not patch.get(key):
            patch[key] = None
    if not patch.get("country"):
        patch["country"] = current_app.config["DEFAULT_COUNTRY"]

    now = (clock or utcnow)()
    tracking_code = generate_tracking_code(
        current_app.config["TRACKING_CODE_PREFIX"],
        rng=rng,
        clock=lambda: now,
    )

    order = Order(
        **patch,
        items=items,
        status=OrderStage.PENDING.value,
        payment_method=PAYMENT_METHOD_COD,
        payment_status=PAYMENT_PENDING,
        tracking_code=tracking_code,
        estimated_delivery=estimate_delivery(now, rng=rng),
        created_at=now,
    )

    with atomic("Tracking code collision, please retry the order"):
        db.session.add(order)
        db.session.flush()
        db.session.add(TrackingEvent(
            order_id=order.id,
            status=OrderStage.PENDING.value,
            message=STATUS_MESSAGES[OrderStage.PENDING],
            created_at=now,
        ))

    current_app.logger.info(
        "Cash on delivery order %s created (total=%s, tracking=%s)",
        order.id, order.total, order.tracking_code,
    )

    currency = current_app.config["CURRENCY"]
    _send("new order", lambda n: n.broadcast(notify.event(notify.EVENT_NEW_ORDER, {
        "orderId": order.id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "total": order.total,
        "currency": currency,
        "trackingCode": order.tracking_code,
        "trackingNumber": order.tracking_code,
        "payment_method": "Cash on Delivery",
        "payment_status": order.payment_status,
        "message": f"Cash on Delivery Order #{order.id} received!",
    }, at=now)))
    _send("new order (admin)", lambda n: n.publish(notify.ADMIN_ROOM, notify.event(notify.EVENT_NEW_ORDER_ADMIN, {
        "orderId": order.id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "phone": order.customer_phone,
        "address": order.shipping_address,
        "total": order.total,
        "currency": currency,
        "trackingCode": order.tracking_code,
        "trackingNumber": order.tracking_code,
        "items": order.items,
        "estimatedDelivery": to_iso_date(order.estimated_delivery),
        "message": "NEW CASH ON DELIVERY ORDER!",
    }, at=now)))

    return order


# ================================================================================
# TRANSITIONS
# ================================================================================

def update_order_status(order_id: int, new_status: str, *, clock: Clock | None = None) -> Order:
    """
    Set the order's status label and append the matching tracking event.

    Raises:
        NotFoundError: Order does not exist
        ValidationError: Status missing or blank
    """
    order = _get_order_or_404(order_id)
    status = OrderStatus.parse(new_status)
    now = (clock or utcnow)()

    with atomic():
        order.status = status.label
        db.session.add(TrackingEvent(
            order_id=order.id,
            status=status.label,
            message=status.message,
            created_at=now,
        ))

    current_app.logger.info("Order %s status -> %s", order.id, status.label)

    payload = {
        "orderId": order.id,
        "status": status.label,
        "message": status.message,
    }
    _send("order updated", lambda n: n.publish_many(
        [notify.order_room(order.id), notify.customer_room(order.customer_email)],
        notify.event(notify.EVENT_ORDER_UPDATED, payload, at=now),
    ))
    _send("orders changed", lambda n: n.publish(
        notify.ADMIN_ROOM, notify.event(notify.EVENT_ORDERS_UPDATED, at=now),
    ))
    return order


def confirm_payment(order_id: int, *, by_admin: bool = False, clock: Clock | None = None) -> Order:
    """
    Mark the cash collected. No check of the previous payment status: a second
    call leaves it "paid" and appends another tracking event.

    Raises:
        NotFoundError: Order does not exist
    """
    order = _get_order_or_404(order_id)
    now = (clock or utcnow)()
    message = PAYMENT_MESSAGE_ADMIN if by_admin else PAYMENT_MESSAGE_CUSTOMER

    with atomic():
        order.payment_status = PAYMENT_PAID
        db.session.add(TrackingEvent(
            order_id=order.id,
            status=TRACKING_STATUS_PAID,
            message=message,
            created_at=now,
        ))

    current_app.logger.info("Order %s payment confirmed (by_admin=%s)", order.id, by_admin)

    if by_admin:
        evt = notify.event(notify.EVENT_PAYMENT_CONFIRMED, {
            "orderId": order.id,
            "message": "Cash on Delivery payment confirmed by admin!",
        }, at=now)
    else:
        evt = notify.event(notify.EVENT_PAYMENT_RECEIVED, {
            "orderId": order.id,
            "message": "Cash on Delivery payment received!",
        }, at=now)
    _send("payment", lambda n: n.broadcast(evt))
    return order


# ================================================================================
# READS
# ================================================================================

def get_order(order_id: int) -> Order:
    return _get_order_or_404(order_id)


def list_orders() -> list[Order]:
    """All orders, newest first."""
    return (
        db.session.query(Order)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_payment_status(order_id: int) -> dict:
    order = _get_order_or_404(order_id)
    return {
        "payment_status": order.payment_status,
        "amount": order.total,
        "payment_method": order.payment_method,
        "currency": current_app.config["CURRENCY"],
    }
