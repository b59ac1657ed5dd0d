from __future__ import annotations

from ..extensions import db
from tillpoint.money import format_amount
from tillpoint.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer with denormalized loyalty aggregates.

    total_spent, visit_count and loyalty_points only grow, and only through
    a committed sale that references the customer (customer_service.apply_loyalty_accrual).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("store_id", "email", name="uq_customers_store_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Denormalized aggregates (updated when sales are committed)
    total_spent = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    visit_count = db.Column(db.Integer, nullable=False, default=0)
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)
    last_visit_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "total_spent": format_amount(self.total_spent),
            "visit_count": self.visit_count,
            "loyalty_points": self.loyalty_points,
            "last_visit_at": to_utc_z(self.last_visit_at) if self.last_visit_at else None,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }
