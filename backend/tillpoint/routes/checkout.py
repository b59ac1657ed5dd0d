# Overview: Flask API routes for checkout; parses input and returns JSON responses.

# backend/tillpoint/routes/checkout.py
"""Checkout API: price a cart and commit it as a sale."""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import current_staff_id, require_staff
from ..services import checkout_service
from ..services.errors import CheckoutError
from ..models import SaleDiscount, SaleItem
from ..extensions import db
from tillpoint.money import format_amount


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


def _parse_cart_payload(data: dict):
    store_id = data.get("store_id")
    if not isinstance(store_id, int):
        return None, (jsonify({"error": "store_id required", "code": "invalid_request"}), 400)

    lines = data.get("lines")
    if not isinstance(lines, list) or not all(isinstance(l, dict) for l in lines):
        return None, (jsonify({"error": "lines must be a list of {product_id, quantity}", "code": "invalid_request"}), 400)

    discount_ids = data.get("applied_discount_ids") or []
    if not isinstance(discount_ids, list):
        return None, (jsonify({"error": "applied_discount_ids must be a list", "code": "invalid_request"}), 400)

    cart = checkout_service.build_cart(
        store_id,
        lines,
        customer_id=data.get("customer_id"),
        discount_ids=discount_ids,
    )
    return cart, None


@checkout_bp.post("/quote")
@require_staff
def quote_route():
    """
    Price a cart without writing anything.

    Body: {store_id, customer_id?, lines:[{product_id, quantity}], applied_discount_ids:[...]}
    """
    try:
        data = request.get_json(silent=True) or {}
        cart, error = _parse_cart_payload(data)
        if error:
            return error

        pricing = checkout_service.quote(cart)
        return jsonify({"cart": cart.to_dict(), "pricing": pricing.to_dict()}), 200

    except CheckoutError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to price cart")
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.post("/commit")
@require_staff
def commit_route():
    """
    Commit a cart as a sale.

    Body: {store_id, customer_id?, lines:[{product_id, quantity}],
           applied_discount_ids:[...], payment_method, idempotency_key?, notes?}
    Returns: 201 {receipt_number, total, sale_id}
    """
    try:
        data = request.get_json(silent=True) or {}
        payment_method = data.get("payment_method")
        if not payment_method:
            return jsonify({"error": "payment_method required", "code": "invalid_request"}), 400

        cart, error = _parse_cart_payload(data)
        if error:
            return error

        pricing = checkout_service.quote(cart)
        sale = checkout_service.commit(
            cart,
            pricing,
            payment_method,
            current_staff_id(),
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes"),
        )
        cart.clear()

        return jsonify({
            "sale_id": sale.id,
            "receipt_number": sale.receipt_number,
            "total": format_amount(sale.total_amount),
        }), 201

    except CheckoutError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.get("/sales/<int:sale_id>")
@require_staff
def get_sale_route(sale_id: int):
    """Get a committed sale with its items and discount breakdown."""
    sale = checkout_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    items = db.session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id).all()
    discounts = db.session.query(SaleDiscount).filter_by(sale_id=sale_id).order_by(SaleDiscount.id).all()

    return jsonify({
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in items],
        "discounts": [d.to_dict() for d in discounts],
    }), 200
