from __future__ import annotations

from ..extensions import db
from tillpoint.money import format_amount
from tillpoint.time_utils import to_utc_z


class Sale(db.Model):
    """
    Committed sale header.

    Created exactly once per successful checkout commit, in the same database
    transaction as its items, stock decrements and loyalty accrual. Nothing is
    visible to readers until that transaction commits.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("store_id", "receipt_number", name="uq_sales_store_receipt"),
        db.UniqueConstraint("store_id", "idempotency_key", name="uq_sales_store_idempotency"),
        db.Index("ix_sales_receipt_number", "receipt_number"),
        db.Index("ix_sales_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    # Staff identity comes from the external auth collaborator
    staff_id = db.Column(db.String(64), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    # Human-readable receipt number (e.g., "RCP-001-20261018-000042")
    receipt_number = db.Column(db.String(64), nullable=False)
    # Client-supplied token; a repeated commit with the same key returns the original sale
    idempotency_key = db.Column(db.String(64), nullable=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)  # cash, card, ...
    payment_status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "staff_id": self.staff_id,
            "customer_id": self.customer_id,
            "receipt_number": self.receipt_number,
            "idempotency_key": self.idempotency_key,
            "subtotal": format_amount(self.subtotal),
            "discount_amount": format_amount(self.discount_amount),
            "tax_amount": format_amount(self.tax_amount),
            "total_amount": format_amount(self.total_amount),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """
    Line item on a committed sale.

    unit_price is the price captured in the cart when the line was added,
    the authoritative historical price regardless of later product edits.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_amount(self.unit_price),
            "line_total": format_amount(self.line_total),
            "created_at": to_utc_z(self.created_at),
        }


class SaleDiscount(db.Model):
    """Discount rule applied to a committed sale, with its share of the discount amount."""
    __tablename__ = "sale_discounts"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "discount_rule_id", name="uq_sale_discounts_sale_rule"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    discount_rule_id = db.Column(db.Integer, db.ForeignKey("discount_rules.id"), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    sale = db.relationship("Sale", backref=db.backref("discounts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "discount_rule_id": self.discount_rule_id,
            "amount": format_amount(self.amount),
        }
