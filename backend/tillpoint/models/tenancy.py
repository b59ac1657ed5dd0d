from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from tillpoint.time_utils import to_utc_z


class Store(db.Model):
    """
    Store configuration as seen by the checkout core.

    Owned by the store-management collaborator; checkout only reads
    tax_rate_bps and currency.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_stores_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)

    currency = db.Column(db.String(3), nullable=False, default="USD")
    timezone = db.Column(db.String(64), nullable=False, default="UTC")
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)  # Basis points (e.g., 800 = 8%)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    @property
    def tax_rate(self) -> Decimal:
        return Decimal(self.tax_rate_bps or 0) / Decimal(10000)

    def __repr__(self) -> str:
        return f"<Store id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "currency": self.currency,
            "timezone": self.timezone,
            "tax_rate_bps": self.tax_rate_bps,
            "created_at": to_utc_z(self.created_at),
        }
