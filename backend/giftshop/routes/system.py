# backend/giftshop/routes/system.py
"""
Root banner and health check.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from ..services.notification_service import get_notifier

system_bp = Blueprint("system", __name__)


@system_bp.get("/")
def index():
    return jsonify({"message": "Pink Bears Gifts Backend is running! - Cash on Delivery Only"})


@system_bp.get("/health")
def health():
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        database = {"status": "healthy", "latency_ms": round((time.time() - start_time) * 1000, 2)}
    except Exception:
        current_app.logger.exception("Database health check failed")
        database = {"status": "unhealthy", "error": "Database error"}

    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "database": database,
        "realtime": {"status": "healthy", "notifier": get_notifier() is not None},
    }), 200 if healthy else 503
