"""
Order lifecycle tests.

Verifies:
- Tracking codes follow the brand format and are never reused
- Delivery estimate lands 3-5 days after creation
- Order + first tracking event are written together, or not at all
- Open status labels and the payment confirmation path
- Notifications follow a successful write and never fail it
"""

import random
from datetime import datetime

import pytest

from giftshop.extensions import db
from giftshop.errors import ConflictError, NotFoundError, ValidationError
from giftshop.models import Order, TrackingEvent
from giftshop.services import notification_service as notify
from giftshop.services import order_service
from giftshop.services.identifier_service import tracking_code_pattern
from giftshop.services.order_service import OrderStage, OrderStatus
from giftshop.validation import MAX_ORDER_TOTAL


FIXED_NOW = datetime(2025, 3, 14, 9, 30, 0)


def _events(order_id):
    return (
        db.session.query(TrackingEvent).filter_by(order_id=order_id)
        .order_by(TrackingEvent.id.asc())
        .all()
    )


# =============================================================================
# CREATE
# =============================================================================


class TestCreateOrder:
    def test_tracking_code_format(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload())
        assert tracking_code_pattern("PINKIES").match(order.tracking_code)
        assert order.tracking_code.startswith("PINKIES")

    def test_tracking_codes_never_reused(self, db_session, checkout_payload):
        codes = {order_service.create_order(checkout_payload()).tracking_code for _ in range(20)}
        assert len(codes) == 20

    def test_tracking_code_embeds_creation_millis(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload(), clock=lambda: FIXED_NOW)
        millis = int((FIXED_NOW - datetime(1970, 1, 1)).total_seconds() * 1000)
        assert order.tracking_code.startswith(f"PINKIES{millis}")
        assert len(order.tracking_code) == len(f"PINKIES{millis}") + 5

    def test_estimated_delivery_three_to_five_days(self, db_session, checkout_payload):
        for seed in range(10):
            order = order_service.create_order(
                checkout_payload(), rng=random.Random(seed), clock=lambda: FIXED_NOW,
            )
            assert (order.estimated_delivery - FIXED_NOW.date()).days in (3, 4, 5)

    def test_initial_state(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload())

        assert order.id > 0
        assert order.status == "pending"
        assert order.payment_method == "cash_on_delivery"
        assert order.payment_status == "pending"
        assert order.country == "India"
        assert order.address_line2 is None
        assert order.items[0]["name"] == "Rose Gold Necklace"

        events = _events(order.id)
        assert len(events) == 1
        assert events[0].status == "pending"
        assert events[0].message == "Order received - Payment pending (Cash on Delivery)"

    def test_optional_fields_kept(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload(
            address_line2="Flat 4", landmark="Near the temple",
            country="Nepal", delivery_instructions="Ring twice",
        ))
        assert order.address_line2 == "Flat 4"
        assert order.landmark == "Near the temple"
        assert order.country == "Nepal"
        assert order.delivery_instructions == "Ring twice"

    def test_total_one_accepted(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload(total=1))
        assert order.total == 1

    def test_total_zero_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(total=0))
        assert db_session.query(Order).count() == 0

    def test_total_too_large_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError, match="cannot exceed"):
            order_service.create_order(checkout_payload(total=10**20))
        assert db_session.query(Order).count() == 0

    def test_total_at_cap_accepted(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload(total=MAX_ORDER_TOTAL))
        assert order.total == MAX_ORDER_TOTAL

    def test_item_price_too_large_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(
                items=[{"id": 1, "name": "Diamond Bear", "price": 10**20, "quantity": 1}],
            ))

    @pytest.mark.parametrize("field,value", [
        ("customer_name", {"a": 1}),
        ("city", ["x"]),
    ])
    def test_non_string_text_rejected(self, db_session, checkout_payload, field, value):
        with pytest.raises(ValidationError, match=f"{field} must be a string"):
            order_service.create_order(checkout_payload(**{field: value}))
        assert db_session.query(Order).count() == 0

    def test_total_missing_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(total=None))

    def test_fractional_total_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(total=45.5))

    def test_missing_city_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError) as exc:
            order_service.create_order(checkout_payload(city=None))
        assert "city" in str(exc.value)
        assert db_session.query(Order).count() == 0

    def test_blank_city_rejected(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(city="   "))

    def test_present_city_accepted(self, db_session, checkout_payload):
        order = order_service.create_order(checkout_payload(city="Pune"))
        assert order.city == "Pune"

    def test_items_must_be_list(self, db_session, checkout_payload):
        with pytest.raises(ValidationError):
            order_service.create_order(checkout_payload(items="necklace"))

    def test_duplicate_tracking_code_is_conflict(self, db_session, checkout_payload):
        """Same seed + same clock yields the same code; the unique index rejects it."""
        first = order_service.create_order(
            checkout_payload(), rng=random.Random(7), clock=lambda: FIXED_NOW,
        )

        with pytest.raises(ConflictError):
            order_service.create_order(
                checkout_payload(), rng=random.Random(7), clock=lambda: FIXED_NOW,
            )

        # Rolled back as a unit: no orphan order, no orphan tracking event
        assert db_session.query(Order).count() == 1
        assert db_session.query(TrackingEvent).count() == 1
        assert db_session.query(Order).one().tracking_code == first.tracking_code


# =============================================================================
# TRANSITIONS
# =============================================================================


class TestUpdateOrderStatus:
    def test_known_status(self, order):
        order_service.update_order_status(order.id, "shipped")

        assert order.status == "shipped"
        last = _events(order.id)[-1]
        assert last.status == "shipped"
        assert last.message == "Order has been shipped - Collect payment on delivery"

    def test_custom_status_accepted(self, order):
        order_service.update_order_status(order.id, "awaiting_pickup")

        assert order.status == "awaiting_pickup"
        assert _events(order.id)[-1].message == "Order status updated to awaiting_pickup"

    def test_transitions_not_enforced(self, order):
        order_service.update_order_status(order.id, "delivered")
        order_service.update_order_status(order.id, "pending")
        assert order.status == "pending"
        assert [e.status for e in _events(order.id)] == ["pending", "delivered", "pending"]

    def test_blank_status_rejected(self, order):
        with pytest.raises(ValidationError):
            order_service.update_order_status(order.id, "  ")
        assert len(_events(order.id)) == 1

    def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.update_order_status(9999, "shipped")


class TestOrderStatus:
    def test_parse_known(self):
        status = OrderStatus.parse("out_for_delivery")
        assert status.stage is OrderStage.OUT_FOR_DELIVERY
        assert not status.is_custom
        assert status.message == "Order is out for delivery - Collect payment"

    def test_parse_custom(self):
        status = OrderStatus.parse("gift_wrapped")
        assert status.is_custom
        assert status.label == "gift_wrapped"
        assert not status.is_terminal

    def test_terminal(self):
        assert OrderStatus.parse("delivered").is_terminal
        assert OrderStatus.parse("cancelled").is_terminal
        assert not OrderStatus.parse("shipped").is_terminal

    @pytest.mark.parametrize("raw", [None, "", "   ", 5])
    def test_parse_rejects(self, raw):
        with pytest.raises(ValidationError):
            OrderStatus.parse(raw)


class TestConfirmPayment:
    def test_confirm_twice(self, order):
        order_service.confirm_payment(order.id)
        assert order.payment_status == "paid"

        order_service.confirm_payment(order.id)
        assert order.payment_status == "paid"

        paid = [e for e in _events(order.id) if e.status == "paid"]
        assert len(paid) == 2

    def test_messages_by_path(self, order):
        order_service.confirm_payment(order.id)
        order_service.confirm_payment(order.id, by_admin=True)

        messages = [e.message for e in _events(order.id) if e.status == "paid"]
        assert messages == [
            "Cash payment received upon delivery",
            "Cash payment received upon delivery - Order completed",
        ]

    def test_order_status_untouched(self, order):
        order_service.confirm_payment(order.id)
        assert order.status == "pending"

    def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.confirm_payment(9999)


# =============================================================================
# READS
# =============================================================================


class TestReads:
    def test_list_orders_newest_first(self, db_session, checkout_payload):
        older = order_service.create_order(checkout_payload(), clock=lambda: datetime(2025, 1, 1))
        newer = order_service.create_order(checkout_payload(), clock=lambda: datetime(2025, 2, 1))
        assert [o.id for o in order_service.list_orders()] == [newer.id, older.id]

    def test_payment_status(self, order):
        status = order_service.get_payment_status(order.id)
        assert status == {
            "payment_status": "pending",
            "amount": 4599,
            "payment_method": "cash_on_delivery",
            "currency": "INR",
        }

    def test_get_order_missing(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.get_order(12345)


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class TestOrderNotifications:
    def test_create_announces_to_everyone_and_admins(self, db_session, listen, checkout_payload):
        admin = listen("admin-console", notify.ADMIN_ROOM)
        shopper = listen("other-shopper")

        order = order_service.create_order(checkout_payload())

        assert admin.types() == [notify.EVENT_NEW_ORDER, notify.EVENT_NEW_ORDER_ADMIN]
        assert shopper.types() == [notify.EVENT_NEW_ORDER]

        rich = admin.events[1].payload
        assert rich["orderId"] == order.id
        assert rich["trackingCode"] == order.tracking_code
        assert rich["trackingNumber"] == order.tracking_code
        assert admin.events[0].payload["trackingNumber"] == order.tracking_code
        assert shopper.events[0].payload["trackingNumber"] == order.tracking_code
        assert rich["address"] == "12 Lane, Pune, MH - 411001"
        assert rich["estimatedDelivery"] == order.estimated_delivery.isoformat()

    def test_status_update_fan_out(self, order, listen):
        watcher = listen("watcher", notify.order_room(order.id))
        customer = listen("customer-tab", notify.customer_room("A@X.com"))
        admin = listen("admin-console", notify.ADMIN_ROOM)

        order_service.update_order_status(order.id, "confirmed")

        assert watcher.types() == [notify.EVENT_ORDER_UPDATED]
        assert watcher.events[0].payload == {
            "orderId": order.id,
            "status": "confirmed",
            "message": "Order confirmed - Ready for delivery",
        }
        assert customer.types() == [notify.EVENT_ORDER_UPDATED]
        assert admin.types() == [notify.EVENT_ORDERS_UPDATED]
        assert admin.events[0].payload is None

    def test_payment_events_by_path(self, order, listen):
        anyone = listen("anyone")

        order_service.confirm_payment(order.id)
        order_service.confirm_payment(order.id, by_admin=True)

        assert anyone.types() == [notify.EVENT_PAYMENT_RECEIVED, notify.EVENT_PAYMENT_CONFIRMED]

    def test_failing_subscriber_does_not_fail_write(self, db_session, notifier, checkout_payload):
        class Broken:
            key = "broken"

            def deliver(self, event):
                raise RuntimeError("socket gone")

        notifier.connect(Broken())
        order = order_service.create_order(checkout_payload())
        assert db_session.get(Order, order.id) is not None
