# Overview: Service-layer aggregates for the admin dashboard.

from __future__ import annotations

from collections import Counter
from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Order, Product
from ..validation import coerce_integer
from .identifier_service import Clock
from .order_service import PAYMENT_PAID, PAYMENT_PENDING
from giftshop.time_utils import utcnow


RECENT_WINDOW = timedelta(days=7)
RECENT_LIMIT = 10
TOP_PRODUCTS_LIMIT = 5


def _sum_and_count(payment_status: str) -> tuple[int, int]:
    row = db.session.query(
        func.coalesce(func.sum(Order.total), 0),
        func.count(Order.id),
    ).filter(Order.payment_status == payment_status).one()
    return int(row[0] or 0), int(row[1] or 0)


def _item_quantity(item: dict) -> int:
    qty = item.get("quantity", 1)
    return qty if isinstance(qty, int) and not isinstance(qty, bool) else 0


def _product_id(raw) -> int | None:
    """Snapshot ids arrive as ints or numeric strings; anything else is not a product."""
    try:
        return coerce_integer("id", raw)
    except ValidationError:
        return None


def _item_breakdowns(orders: list[Order]) -> tuple[list[dict], list[dict]]:
    """
    Category counts and best sellers, read from the item snapshots.

    Category comes from the snapshot when the client sent one, else from the
    current product row. Product names prefer the live catalog, falling back
    to the name captured at checkout.
    """
    products = {p.id: p for p in db.session.query(Product).all()}

    by_category: Counter = Counter()
    sold: Counter = Counter()
    snapshot_names: dict = {}

    for order in orders:
        for item in order.items or []:
            if not isinstance(item, dict):
                continue
            product_id = _product_id(item.get("id"))
            product = products.get(product_id)
            category = item.get("category") or (product.category if product else None)
            if category:
                by_category[category] += 1
            if product_id is not None:
                sold[product_id] += _item_quantity(item)
                snapshot_names.setdefault(product_id, item.get("name"))

    categories = [{"category": c, "count": n} for c, n in sorted(by_category.items())]
    top = []
    for product_id, qty in sold.most_common(TOP_PRODUCTS_LIMIT):
        product = products.get(product_id)
        top.append({
            "id": product_id,
            "name": product.name if product else snapshot_names.get(product_id),
            "total_sold": qty,
        })
    return categories, top


def dashboard(*, clock: Clock | None = None) -> dict:
    """
    Totals for paid and pending collections, counts by status and category,
    best sellers, and the most recent orders from the last seven days.
    """
    now = (clock or utcnow)()

    total_sales, paid_orders = _sum_and_count(PAYMENT_PAID)
    pending_amount, pending_orders = _sum_and_count(PAYMENT_PENDING)
    total_all = db.session.query(func.count(Order.id)).scalar() or 0

    status_rows = (
        db.session.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .order_by(Order.status.asc())
        .all()
    )

    recent = (
        db.session.query(Order)
        .filter(Order.created_at >= now - RECENT_WINDOW)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    categories, top = _item_breakdowns(db.session.query(Order).all())

    return {
        "totalSales": total_sales,
        "totalOrders": paid_orders,
        "totalAllOrders": int(total_all),
        "pendingCollections": pending_amount,
        "pendingOrders": pending_orders,
        "currency": current_app.config["CURRENCY"],
        "ordersByStatus": [{"status": s, "count": int(c)} for s, c in status_rows],
        "ordersByCategory": categories,
        "topSellingProducts": top,
        "recentOrders": [o.to_dict() for o in recent],
        "paymentMethod": "Cash on Delivery Only",
        "success": True,
    }
