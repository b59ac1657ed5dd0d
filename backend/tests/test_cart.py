# Overview: Pytest coverage for in-memory cart behavior.

from decimal import Decimal
from types import SimpleNamespace

import pytest

from tillpoint.services.cart import Cart
from tillpoint.services.errors import InvalidReference


def _product(pid, price, store_id=1, name=None, is_active=True):
    return SimpleNamespace(
        id=pid,
        store_id=store_id,
        name=name or f"Product {pid}",
        price=Decimal(price),
        is_active=is_active,
    )


class TestCartLines:

    def test_add_line_snapshots_price(self):
        cart = Cart(store_id=1)
        product = _product(1, "10.00")
        cart.add_line(product, 2)

        product.price = Decimal("12.00")
        line = cart.snapshot()[0]
        assert line.unit_price == Decimal("10.00")
        assert line.line_total == Decimal("20.00")

    def test_add_existing_product_increments_quantity(self):
        cart = Cart(store_id=1)
        product = _product(1, "10.00")
        cart.add_line(product, 2)
        cart.add_line(product)

        assert cart.line_count == 1
        assert cart.snapshot()[0].quantity == 3

    def test_add_non_positive_quantity_fails(self):
        cart = Cart(store_id=1)
        with pytest.raises(ValueError):
            cart.add_line(_product(1, "10.00"), 0)
        with pytest.raises(ValueError):
            cart.add_line(_product(1, "10.00"), -2)
        assert cart.is_empty

    def test_add_missing_product_fails(self):
        cart = Cart(store_id=1)
        with pytest.raises(InvalidReference):
            cart.add_line(None)

    def test_add_foreign_store_product_fails(self):
        cart = Cart(store_id=1)
        with pytest.raises(InvalidReference):
            cart.add_line(_product(1, "10.00", store_id=2))

    def test_add_inactive_product_fails(self):
        cart = Cart(store_id=1)
        with pytest.raises(InvalidReference):
            cart.add_line(_product(1, "10.00", is_active=False))

    def test_set_quantity(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"))
        cart.set_quantity(1, 5)
        assert cart.item_count == 5

    def test_set_quantity_zero_removes_line(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"))
        cart.add_line(_product(2, "5.00"))

        assert cart.set_quantity(1, 0) is None
        assert [l.product_id for l in cart.snapshot()] == [2]

        cart.set_quantity(2, -1)
        assert cart.is_empty

    def test_set_quantity_unknown_product_fails(self):
        cart = Cart(store_id=1)
        with pytest.raises(InvalidReference):
            cart.set_quantity(99, 1)

    def test_remove_line(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"))
        cart.remove_line(1)
        assert cart.is_empty

        with pytest.raises(InvalidReference):
            cart.remove_line(1)

    def test_snapshot_is_a_copy(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"))

        cart.snapshot()[0].quantity = 50
        assert cart.item_count == 1

    def test_snapshot_keeps_insertion_order(self):
        cart = Cart(store_id=1)
        for pid in (3, 1, 2):
            cart.add_line(_product(pid, "1.00"))
        assert [l.product_id for l in cart.snapshot()] == [3, 1, 2]


class TestCartState:

    def test_subtotal(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"), 2)
        cart.add_line(_product(2, "2.50"), 3)
        assert cart.subtotal == Decimal("27.50")

    def test_clear_resets_everything(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00"))
        cart.attach_customer(7)
        cart.applied_discounts[1] = object()

        cart.clear()

        assert cart.is_empty
        assert cart.customer_id is None
        assert cart.applied_discounts == {}

    def test_detach_customer(self):
        cart = Cart(store_id=1)
        cart.attach_customer(7)
        cart.detach_customer()
        assert cart.customer_id is None

    def test_to_dict(self):
        cart = Cart(store_id=1)
        cart.add_line(_product(1, "10.00", name="Mug"), 2)
        data = cart.to_dict()

        assert data["store_id"] == 1
        assert data["lines"][0]["name"] == "Mug"
        assert data["lines"][0]["line_total"] == "20.00"
