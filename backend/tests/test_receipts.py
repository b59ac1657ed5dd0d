# Overview: Pytest coverage for receipt number allocation.

import re

import pytest

from tillpoint.extensions import db
from tillpoint.models import ReceiptSequence
from tillpoint.services.receipt_service import ReceiptSequenceError, next_receipt_number

RECEIPT_RE = re.compile(r"^RCP-\d{3}-\d{8}-\d{6}$")


class TestReceiptNumbers:

    def test_format(self, db_session, store):
        number = next_receipt_number(store.id)
        db.session.commit()

        assert RECEIPT_RE.match(number)
        assert number.startswith(f"RCP-{store.id:03d}-")
        assert number.endswith("-000001")

    def test_numbers_within_an_instant_are_distinct(self, db_session, store):
        numbers = [next_receipt_number(store.id) for _ in range(5)]
        db.session.commit()

        assert len(set(numbers)) == 5
        assert [n[-6:] for n in numbers] == ["000001", "000002", "000003", "000004", "000005"]
        assert db_session.query(ReceiptSequence).filter_by(store_id=store.id).one().next_number == 6

    def test_counters_are_per_store(self, db_session, store, other_store):
        next_receipt_number(store.id)
        next_receipt_number(store.id)
        other = next_receipt_number(other_store.id)
        db.session.commit()

        assert other.endswith("-000001")

    def test_rollback_releases_number(self, db_session, store):
        next_receipt_number(store.id)
        db.session.rollback()

        assert next_receipt_number(store.id).endswith("-000001")
        db.session.commit()

    def test_prefix(self, app, db_session, store, monkeypatch):
        monkeypatch.setitem(app.config, "RECEIPT_PREFIX", "INV")
        assert next_receipt_number(store.id).startswith("INV-")
        assert next_receipt_number(store.id, prefix="XX").startswith("XX-")
        db.session.commit()

    def test_store_required(self, db_session):
        with pytest.raises(ReceiptSequenceError):
            next_receipt_number(None)
