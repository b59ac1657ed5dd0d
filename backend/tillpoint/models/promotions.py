from __future__ import annotations

from ..extensions import db
from tillpoint.money import format_amount
from tillpoint.time_utils import to_utc_z

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED_AMOUNT = "fixed_amount"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED_AMOUNT)


class DiscountRule(db.Model):
    """
    Store-scoped promotional rule.

    discount_value is a percent (10 = 10%) for percentage rules and a
    currency amount for fixed_amount rules.
    """
    __tablename__ = "discount_rules"
    __table_args__ = (
        db.CheckConstraint("discount_value >= 0", name="ck_discount_rules_value_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    discount_type = db.Column(db.String(32), nullable=False)  # percentage, fixed_amount
    discount_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    min_order_amount = db.Column(db.Numeric(12, 2), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "discount_type": self.discount_type,
            "discount_value": format_amount(self.discount_value),
            "min_order_amount": format_amount(self.min_order_amount),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
