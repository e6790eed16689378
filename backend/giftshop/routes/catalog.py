# Overview: Flask API routes for the storefront catalog and contact form.

from flask import Blueprint, current_app, jsonify, request

from ..errors import ShopError
from ..services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/products")
def list_products_route():
    """
    Query params:
    - category: exact category, or "all"
    - search: substring of name or description
    """
    try:
        products = catalog_service.list_products(
            category=request.args.get("category"),
            search=request.args.get("search"),
        )
        return jsonify([p.to_dict() for p in products])
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.get("/products/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return jsonify(catalog_service.get_product(product_id).to_dict())
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code


@catalog_bp.post("/contact")
def contact_route():
    try:
        msg = catalog_service.create_contact_message(request.get_json(silent=True) or {})
        return jsonify({"message": "Message sent successfully!", "id": msg.id})
    except ShopError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to store contact message")
        return jsonify({"error": "Internal server error"}), 500
