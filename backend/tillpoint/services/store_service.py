from __future__ import annotations

from decimal import Decimal

from tillpoint.extensions import db
from tillpoint.models import Store
from .errors import InvalidReference


def get_store(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if store is None:
        raise InvalidReference("Store not found", details={"store_id": store_id})
    return store


def tax_rate(store_id: int) -> Decimal:
    """Store tax rate as a fraction (800 bps -> Decimal('0.08'))."""
    return get_store(store_id).tax_rate


def create_store(name: str, code: str | None = None, *, tax_rate_bps: int = 0, currency: str = "USD") -> Store:
    if not name:
        raise ValueError("Store name is required")
    if tax_rate_bps < 0:
        raise ValueError("tax_rate_bps cannot be negative")

    store = Store(name=name, code=code, tax_rate_bps=tax_rate_bps, currency=currency)
    db.session.add(store)
    db.session.commit()
    return store
