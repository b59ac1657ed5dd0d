from __future__ import annotations

from ..extensions import db


class ReceiptSequence(db.Model):
    """
    Atomic per-store receipt counter.

    Incremented inside the sale commit transaction, so two registers
    committing in the same instant still get distinct numbers, and a
    rolled-back commit does not consume one.
    """
    __tablename__ = "receipt_sequences"
    __table_args__ = (
        db.UniqueConstraint("store_id", name="uq_receipt_sequences_store"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", backref=db.backref("receipt_sequences", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "next_number": self.next_number,
        }
