# Overview: Stock movements caused by sale commits.

# backend/tillpoint/services/inventory_service.py
"""
Inventory invariants (authoritative)

- Product.stock_quantity never goes negative (also enforced by a CHECK constraint).
- Sale commits change stock only through conditional UPDATE statements
  evaluated by the database, never by reading the quantity into Python and
  writing it back. Two registers selling the last unit cannot both succeed.
- When a sale asks for more than is on hand, the configured oversell policy
  decides:
    reject -> InsufficientStock, the commit rolls back
    clamp  -> stock is floored at zero, a warning is logged and a
              StockDiscrepancy row is written in the same transaction
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import select, update

from ..extensions import db
from ..models import Product, StockDiscrepancy
from .concurrency import lock_for_update
from .errors import InsufficientStock, StaleProduct

OVERSELL_REJECT = "reject"
OVERSELL_CLAMP = "clamp"
OVERSELL_POLICIES = (OVERSELL_REJECT, OVERSELL_CLAMP)


@dataclass(frozen=True)
class StockDecrement:
    product_id: int
    requested: int
    decremented: int

    @property
    def clamped(self) -> bool:
        return self.decremented < self.requested


def oversell_policy() -> str:
    policy = (current_app.config.get("CHECKOUT_OVERSELL_POLICY") or OVERSELL_REJECT).lower()
    if policy not in OVERSELL_POLICIES:
        raise ValueError(f"invalid CHECKOUT_OVERSELL_POLICY {policy!r}")
    return policy


def _set_stock(store_id: int, product_id: int, new_value_expr, *conditions):
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.store_id == store_id, *conditions)
        .values(stock_quantity=new_value_expr, version_id=Product.version_id + 1)
        .execution_options(synchronize_session="fetch")
    )
    return db.session.execute(stmt).rowcount


def decrement_stock(
    store_id: int,
    product_id: int,
    quantity: int,
    *,
    sale_id: int,
    policy: str | None = None,
) -> StockDecrement:
    """
    Atomically take `quantity` units of a product off the shelf.

    Must run inside the sale's transaction.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    policy = policy or oversell_policy()

    if _set_stock(store_id, product_id, Product.stock_quantity - quantity, Product.stock_quantity >= quantity):
        return StockDecrement(product_id, quantity, quantity)

    # Short (or gone). Lock the row and look at what is actually there.
    available = db.session.execute(
        lock_for_update(
            select(Product.stock_quantity).where(Product.id == product_id, Product.store_id == store_id)
        )
    ).scalar()
    if available is None:
        raise StaleProduct("Product no longer exists", details={"product_id": product_id})

    if available >= quantity:
        # Restocked between the conditional update and the lock
        _set_stock(store_id, product_id, Product.stock_quantity - quantity)
        return StockDecrement(product_id, quantity, quantity)

    if policy == OVERSELL_REJECT:
        raise InsufficientStock(
            "Insufficient stock to complete sale",
            details={"product_id": product_id, "requested_quantity": quantity, "on_hand": available},
        )

    _set_stock(store_id, product_id, 0)
    record_stock_discrepancy(store_id, product_id, sale_id, requested=quantity, available=available)
    return StockDecrement(product_id, quantity, available)


def record_stock_discrepancy(store_id: int, product_id: int, sale_id: int, *, requested: int, available: int) -> StockDiscrepancy:
    current_app.logger.warning(
        "Stock discrepancy: sale %s requested %d of product %s with %d on hand; clamped to zero",
        sale_id, requested, product_id, available,
        extra={
            "event": "stock_discrepancy",
            "store_id": store_id,
            "product_id": product_id,
            "sale_id": sale_id,
            "requested_quantity": requested,
            "available_quantity": available,
        },
    )
    row = StockDiscrepancy(
        store_id=store_id,
        product_id=product_id,
        sale_id=sale_id,
        requested_quantity=requested,
        available_quantity=available,
    )
    db.session.add(row)
    return row


def list_stock_discrepancies(store_id: int, limit: int = 100) -> list[StockDiscrepancy]:
    return (
        db.session.query(StockDiscrepancy)
        .filter_by(store_id=store_id)
        .order_by(StockDiscrepancy.created_at.desc(), StockDiscrepancy.id.desc())
        .limit(limit)
        .all()
    )
