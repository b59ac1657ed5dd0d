# Overview: Receipt number allocation for committed sales.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ReceiptSequence
from tillpoint.time_utils import date_stamp


class ReceiptSequenceError(Exception):
    """Raised when receipt sequence operations fail."""
    pass


def _current_value(store_id: int) -> int:
    return (
        db.session.query(ReceiptSequence.next_number)
        .filter_by(store_id=store_id)
        .scalar()
    )


def next_receipt_number(store_id: int, *, prefix: str | None = None) -> str:
    """
    Allocate the next receipt number for a store, e.g. "RCP-003-20261018-000042".

    The date stamp is cosmetic; uniqueness comes from the per-store counter,
    which is bumped with a single UPDATE (row-locked until the surrounding
    transaction ends) so concurrent commits never share a number. Runs inside
    the caller's transaction: if the sale rolls back, so does the counter.
    """
    if not store_id:
        raise ReceiptSequenceError("store_id is required")
    prefix = prefix or current_app.config.get("RECEIPT_PREFIX", "RCP")

    stmt = (
        update(ReceiptSequence)
        .where(ReceiptSequence.store_id == store_id)
        .values(next_number=ReceiptSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        db.session.flush()
        next_num = _current_value(store_id) - 1
    else:
        try:
            with db.session.begin_nested():
                db.session.add(ReceiptSequence(store_id=store_id, next_number=2))
            next_num = 1
        except IntegrityError:
            # Another register created the row first; fall back to the increment
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            db.session.flush()
            next_num = _current_value(store_id) - 1

    return f"{prefix}-{store_id:03d}-{date_stamp()}-{next_num:06d}"
