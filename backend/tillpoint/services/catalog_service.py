# backend/tillpoint/services/catalog_service.py
"""
Catalog Index: read-only view of a store's products.

Lookups are always store-scoped. Barcode decoding happens elsewhere; this
module only resolves an already-decoded code to a product.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Product


def list_active_products(store_id: int, limit: int | None = None) -> list[Product]:
    q = (
        db.session.query(Product)
        .filter(Product.store_id == store_id, Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
    )
    if limit:
        q = q.limit(limit)
    return q.all()


def get_product(store_id: int, product_id: int, *, active_only: bool = True) -> Product | None:
    q = db.session.query(Product).filter(Product.id == product_id, Product.store_id == store_id)
    if active_only:
        q = q.filter(Product.is_active.is_(True))
    return q.first()


def find_by_barcode(store_id: int, code: str) -> Product | None:
    code = (code or "").strip()
    if not code:
        return None
    return (
        db.session.query(Product)
        .filter(Product.store_id == store_id, Product.barcode == code, Product.is_active.is_(True))
        .first()
    )


def find_by_sku(store_id: int, sku: str) -> Product | None:
    sku = (sku or "").strip()
    if not sku:
        return None
    return (
        db.session.query(Product)
        .filter(Product.store_id == store_id, Product.sku == sku, Product.is_active.is_(True))
        .first()
    )


def search_products(store_id: int, query: str, limit: int = 100) -> list[Product]:
    """Case-insensitive substring match on name, SKU or barcode among active products."""
    query = (query or "").strip()
    if not query:
        return list_active_products(store_id, limit=limit)

    pattern = f"%{query}%"
    return (
        db.session.query(Product)
        .filter(
            Product.store_id == store_id,
            Product.is_active.is_(True),
            or_(
                Product.name.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.barcode.ilike(pattern),
            ),
        )
        .order_by(Product.name.asc(), Product.id.asc())
        .limit(limit)
        .all()
    )


def low_stock_products(store_id: int) -> list[Product]:
    """Active products at or below their minimum stock level."""
    return (
        db.session.query(Product)
        .filter(
            Product.store_id == store_id,
            Product.is_active.is_(True),
            Product.stock_quantity <= Product.min_stock_level,
        )
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )
