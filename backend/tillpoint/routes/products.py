# Overview: Flask API routes for catalog lookups used at the register.

# backend/tillpoint/routes/products.py
"""
Read-only catalog routes.

All lookups are store-scoped; store_id is a required query parameter.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_staff
from ..services import catalog_service, discount_service, inventory_service

products_bp = Blueprint("products", __name__, url_prefix="/api")


def _store_id_arg():
    return request.args.get("store_id", type=int)


@products_bp.get("/products")
@require_staff
def list_products():
    """
    Active products for a store.

    Query params:
    - store_id: int (required)
    - q: str (optional) - substring match on name, SKU or barcode
    - limit: int (optional, default 100, max 500)
    """
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    limit = min(request.args.get("limit", default=100, type=int) or 100, 500)
    products = catalog_service.search_products(store_id, request.args.get("q", ""), limit=limit)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/products/barcode/<code>")
@require_staff
def product_by_barcode(code: str):
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    product = catalog_service.find_by_barcode(store_id, code)
    if product is None:
        return jsonify({"error": f"No product found with barcode: {code}"}), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.get("/products/low-stock")
@require_staff
def low_stock():
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    products = catalog_service.low_stock_products(store_id)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/stock-discrepancies")
@require_staff
def stock_discrepancies():
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    rows = inventory_service.list_stock_discrepancies(store_id)
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)}), 200


@products_bp.get("/discounts")
@require_staff
def list_discounts():
    """Active discount rules the register can offer."""
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    rules = discount_service.list_active_rules(store_id)
    return jsonify({"items": [r.to_dict() for r in rules], "count": len(rules)}), 200
