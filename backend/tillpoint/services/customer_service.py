# backend/tillpoint/services/customer_service.py
"""
Customer loyalty bookkeeping.

Accrual is a single UPDATE that adds to the stored counters in the database
(total_spent = total_spent + :amount), so concurrent sales for the same
customer never lose an increment.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Customer
from tillpoint.money import ZERO, quantize, to_decimal
from tillpoint.time_utils import utcnow
from .errors import StaleCustomer


def get_customer(customer_id: int, store_id: int | None = None) -> Customer | None:
    q = db.session.query(Customer).filter(Customer.id == customer_id)
    if store_id is not None:
        q = q.filter(Customer.store_id == store_id)
    return q.first()


def loyalty_points_for(amount_spent) -> int:
    """floor(amount) points per unit, scaled by LOYALTY_POINTS_PER_UNIT."""
    amount = to_decimal(amount_spent)
    if amount <= ZERO:
        return 0
    per_unit = int(current_app.config.get("LOYALTY_POINTS_PER_UNIT", 1))
    return int(amount.to_integral_value(rounding=ROUND_FLOOR)) * per_unit


def apply_loyalty_accrual(customer_id: int, amount_spent: Decimal, points_delta: int) -> None:
    """
    Credit one visit, the amount spent and the earned points to a customer.

    Runs inside the caller's transaction. Raises StaleCustomer if the row is gone.
    """
    amount = quantize(amount_spent)
    if amount < ZERO or points_delta < 0:
        raise ValueError("loyalty accrual cannot be negative")

    stmt = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_spent=Customer.total_spent + amount,
            visit_count=Customer.visit_count + 1,
            loyalty_points=Customer.loyalty_points + points_delta,
            last_visit_at=utcnow(),
            version_id=Customer.version_id + 1,
        )
        .execution_options(synchronize_session="fetch")
    )
    if not db.session.execute(stmt).rowcount:
        raise StaleCustomer("Customer no longer exists", details={"customer_id": customer_id})
