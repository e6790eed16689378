# Overview: Read-only storefront catalog and the public contact form.

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import ContactMessage, Product
from ..validation import CONTACT_POLICY, validate_payload
from .transactions import atomic


def list_products(category: str | None = None, search: str | None = None) -> list[Product]:
    """
    Storefront listing. category "all" (or empty) means no filter; search
    matches name or description, case-insensitively.
    """
    q = db.session.query(Product)
    if category and category != "all":
        q = q.filter(Product.category == category)
    if search:
        pattern = f"%{search}%"
        q = q.filter(db.or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    return q.order_by(Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_contact_message(data: dict) -> ContactMessage:
    patch = validate_payload(model=ContactMessage, payload=data, policy=CONTACT_POLICY, partial=False)
    msg = ContactMessage(**patch)
    with atomic():
        db.session.add(msg)
    return msg
