# Overview: Flask API routes for checkout, order lookup, tracking, and chat history.

"""
Customer-facing order routes. None of these require authentication: the
order id or tracking code is the customer's handle on their order.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import ConflictError, ShopError
from ..services import chat_service, order_service, tracking_service
from giftshop.time_utils import to_iso_date

orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.post("/checkout")
def checkout_route():
    """
    Place a cash-on-delivery order.

    Response:
        orderId, trackingCode (alias trackingNumber), total,
        estimatedDelivery (YYYY-MM-DD), payment_method, payment_status, currency

    Error responses:
        400: Missing required field or total below minimum
        500: Tracking code collision (retry) or storage failure
    """
    try:
        order = order_service.create_order(request.get_json(silent=True) or {})
    except ConflictError as e:
        current_app.logger.warning("Checkout conflict: %s", e)
        return jsonify({"error": str(e)}), e.status_code
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "message": "Order placed successfully! Pay when you receive your order.",
        "orderId": order.id,
        "trackingCode": order.tracking_code,
        "trackingNumber": order.tracking_code,
        "total": order.total,
        "estimatedDelivery": to_iso_date(order.estimated_delivery),
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "currency": current_app.config["CURRENCY"],
    })


@orders_bp.post("/orders/<int:order_id>/confirm-payment")
def confirm_payment_route(order_id: int):
    """Customer-side confirmation that cash was handed over."""
    try:
        order_service.confirm_payment(order_id)
        return jsonify({"success": True, "message": "Payment confirmed successfully"})
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to confirm payment")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/orders/<int:order_id>")
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_order(order_id).to_dict())
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.get("/payment-status/<int:order_id>")
def payment_status_route(order_id: int):
    try:
        return jsonify(order_service.get_payment_status(order_id))
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.get("/order-tracking/<tracking_code>")
def tracking_route(tracking_code: str):
    """Order details plus tracking history (newest first) and timeline (oldest first)."""
    try:
        order, history = tracking_service.get_tracking_history(tracking_code)
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load tracking history")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        **order.to_dict(),
        "trackingHistory": history,
        "timeline": tracking_service.get_timeline(order.id),
        "currency": current_app.config["CURRENCY"],
    })


@orders_bp.get("/chat-messages/<int:order_id>")
def chat_messages_route(order_id: int):
    """Conversation for one order, oldest first."""
    try:
        return jsonify([m.to_dict() for m in chat_service.list_messages(order_id)])
    except Exception:
        current_app.logger.exception("Failed to list chat messages")
        return jsonify({"error": "Internal server error"}), 500
