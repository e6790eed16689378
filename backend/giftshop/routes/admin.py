# Overview: Flask API routes for the admin console; parses input and returns JSON responses.

"""
Admin console routes

SECURITY: Everything except /login requires a bearer token issued by /login
(see decorators.require_admin).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_admin
from ..errors import ShopError
from ..services import analytics_service, auth_service, order_service, session_service

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username and password required"}), 400

        admin = auth_service.authenticate(username, password)
        if not admin:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            admin_id=admin.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify({
            "token": token,
            "username": admin.username,
            "session": session.to_dict(),
        })
    except Exception:
        current_app.logger.exception("Failed to login admin")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/logout")
@require_admin
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out"})


@admin_bp.get("/orders")
@require_admin
def list_orders_route():
    """All orders, newest first."""
    try:
        return jsonify([o.to_dict() for o in order_service.list_orders()])
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/orders/<int:order_id>")
@require_admin
def update_order_route(order_id: int):
    """
    Body: {"status": "<label>"}

    Any non-blank label is accepted; known stages get their fixed tracking
    message, anything else a generic one.
    """
    data = request.get_json(silent=True) or {}
    try:
        order_service.update_order_status(order_id, data.get("status"))
        current_app.logger.info("Admin %s set order %s to %s", g.current_admin.username, order_id, data.get("status"))
        return jsonify({"message": "Order status updated successfully"})
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/orders/<int:order_id>/confirm-payment")
@require_admin
def confirm_payment_route(order_id: int):
    try:
        order_service.confirm_payment(order_id, by_admin=True)
        return jsonify({"success": True, "message": "Cash payment confirmed successfully"})
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to confirm payment")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/analytics")
@require_admin
def analytics_route():
    try:
        return jsonify(analytics_service.dashboard())
    except Exception:
        current_app.logger.exception("Failed to build analytics")
        return jsonify({"error": "Internal server error"}), 500
