# backend/tillpoint/services/cart.py
"""
Cart: in-memory line items for one in-progress checkout.

A Cart is owned by a single checkout session and passed explicitly into
discount, pricing and commit calls. It is never persisted; abandoning it has
no side effects.

Lines snapshot the product's unit price when first added. The commit records
that snapshot, not a fresh read, so a price edit made mid-checkout does not
change what the customer was quoted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from tillpoint.money import to_decimal
from .errors import InvalidReference


@dataclass
class CartLine:
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
        }


@dataclass(frozen=True)
class AppliedDiscount:
    """A discount rule accepted for this cart. Its monetary effect is computed at pricing time."""
    rule_id: int
    name: str
    discount_type: str
    discount_value: Decimal
    min_order_amount: Decimal | None = None


@dataclass
class Cart:
    store_id: int
    customer_id: int | None = None
    _lines: dict[int, CartLine] = field(default_factory=dict, repr=False)
    applied_discounts: dict[int, AppliedDiscount] = field(default_factory=dict)

    def add_line(self, product, quantity: int = 1) -> CartLine:
        """Add a product, or bump the quantity of its existing line."""
        if product is None or getattr(product, "id", None) is None:
            raise InvalidReference("Product not found")
        if getattr(product, "store_id", self.store_id) != self.store_id:
            raise InvalidReference(
                "Product does not belong to store",
                details={"product_id": product.id, "store_id": self.store_id},
            )
        if not getattr(product, "is_active", True):
            raise InvalidReference("Product is inactive", details={"product_id": product.id})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        line = self._lines.get(product.id)
        if line is not None:
            line.quantity += quantity
            return line

        line = CartLine(
            product_id=product.id,
            name=product.name,
            unit_price=to_decimal(product.price),
            quantity=quantity,
        )
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: int, quantity: int) -> CartLine | None:
        """Set a line's quantity. Zero or less removes the line."""
        if product_id not in self._lines:
            raise InvalidReference("Product is not in cart", details={"product_id": product_id})
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError("quantity must be an integer")
        if quantity <= 0:
            self.remove_line(product_id)
            return None
        line = self._lines[product_id]
        line.quantity = quantity
        return line

    def remove_line(self, product_id: int) -> None:
        if self._lines.pop(product_id, None) is None:
            raise InvalidReference("Product is not in cart", details={"product_id": product_id})

    def attach_customer(self, customer_id: int) -> None:
        self.customer_id = customer_id

    def detach_customer(self) -> None:
        self.customer_id = None

    def clear(self) -> None:
        """Empty the cart, detach the customer and drop applied discounts."""
        self._lines.clear()
        self.applied_discounts.clear()
        self.customer_id = None

    def snapshot(self) -> list[CartLine]:
        """Lines in insertion order, as copies the caller may not use to mutate the cart."""
        return [
            CartLine(l.product_id, l.name, l.unit_price, l.quantity)
            for l in self._lines.values()
        ]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def item_count(self) -> int:
        return sum(l.quantity for l in self._lines.values())

    @property
    def subtotal(self) -> Decimal:
        """Pre-discount subtotal (unrounded; prices are already at cent precision)."""
        return sum((l.line_total for l in self._lines.values()), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "customer_id": self.customer_id,
            "lines": [l.to_dict() for l in self._lines.values()],
            "applied_discount_ids": list(self.applied_discounts),
        }
