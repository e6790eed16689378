from __future__ import annotations

from ..extensions import db
from giftshop.time_utils import to_iso_date, to_utc_z, utcnow


class Order(db.Model):
    """
    Cash-on-delivery order.

    INVARIANTS:
    - tracking_code is unique at the storage layer and never changes
    - total and estimated_delivery are frozen at creation
    - items is a snapshot taken at checkout, never recomputed

    status is an open label (see services.order_service.OrderStatus);
    payment_status only ever moves pending -> paid.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_created", "created_at"),
        db.Index("ix_orders_payment_status", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    customer_phone = db.Column(db.String(32), nullable=False)

    address_line1 = db.Column(db.String(255), nullable=False)
    address_line2 = db.Column(db.String(255), nullable=True)
    landmark = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(128), nullable=False)
    zip_code = db.Column(db.String(16), nullable=False)
    country = db.Column(db.String(64), nullable=False, default="India")
    delivery_instructions = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(32), nullable=False, default="cash_on_delivery")
    payment_status = db.Column(db.String(16), nullable=False, default="pending")

    total = db.Column(db.Integer, nullable=False)  # smallest currency unit
    items = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(64), nullable=False, default="pending", index=True)
    tracking_code = db.Column(db.String(64), nullable=False, unique=True)
    estimated_delivery = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    tracking_events = db.relationship(
        "TrackingEvent",
        back_populates="order",
        lazy="dynamic",
        order_by="TrackingEvent.id",
    )
    chat_messages = db.relationship(
        "ChatMessage",
        back_populates="order",
        lazy="dynamic",
        order_by="ChatMessage.id",
    )

    @property
    def shipping_address(self) -> str:
        return f"{self.address_line1}, {self.city}, {self.state} - {self.zip_code}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "landmark": self.landmark,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "delivery_instructions": self.delivery_instructions,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "total": self.total,
            "items": list(self.items or []),
            "status": self.status,
            "tracking_code": self.tracking_code,
            "estimated_delivery": to_iso_date(self.estimated_delivery),
            "created_at": to_utc_z(self.created_at),
        }


class TrackingEvent(db.Model):
    """
    One entry of an order's status history.

    IMMUTABLE: Never update or delete. Append-only.
    """
    __tablename__ = "order_tracking"
    __table_args__ = (
        db.Index("ix_order_tracking_order_created", "order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    status = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="tracking_events")

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "location": self.location,
            "timestamp": to_utc_z(self.created_at),
        }


class ChatMessage(db.Model):
    """
    Customer/admin conversation line attached to an order.

    read_status is stored for future read receipts; nothing sets it yet.
    """
    __tablename__ = "chat_messages"
    __table_args__ = (
        db.Index("ix_chat_messages_order_created", "order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    sender_type = db.Column(db.String(16), nullable=False)  # customer, admin
    sender_email = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)
    read_status = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="chat_messages")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "sender_type": self.sender_type,
            "sender_email": self.sender_email,
            "message": self.message,
            "read_status": self.read_status,
            "created_at": to_utc_z(self.created_at),
        }
