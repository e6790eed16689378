from __future__ import annotations

from ..extensions import db
from giftshop.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Catalog entry shown in the storefront.

    Orders never reference a product through a live relation: checkout copies
    id/name/price into the order's item snapshot, so editing or deleting a
    product never changes historical orders.
    """
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Integer, nullable=False)  # smallest currency unit
    category = db.Column(db.String(64), nullable=False, index=True)
    image = db.Column(db.String(512), nullable=True)
    description = db.Column(db.Text, nullable=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "description": self.description,
            "featured": self.featured,
            "created_at": to_utc_z(self.created_at),
        }


class ContactMessage(db.Model):
    """Message left through the public contact form."""
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "created_at": to_utc_z(self.created_at),
        }
