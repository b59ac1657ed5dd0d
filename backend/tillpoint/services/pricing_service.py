"""
Pricing Calculator.

    subtotal           = sum(line.quantity * line.unit_price)
    discount_amount    = clamp(sum(effect(rule, subtotal)), 0, subtotal)
    discounted         = subtotal - discount_amount
    tax_amount         = discounted * tax_rate
    total              = discounted + tax_amount

Percentage effect is subtotal * value / 100; fixed effect is value. Each
reported figure is quantized to cents once, at the end, and total is built
from the quantized parts so total == subtotal - discount + tax holds exactly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from tillpoint.money import MAX_AMOUNT, ZERO, format_amount, quantize, to_decimal
from ..models.promotions import DISCOUNT_FIXED_AMOUNT, DISCOUNT_PERCENTAGE
from .cart import AppliedDiscount, Cart
from .errors import EmptyCart, InvalidReference

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_rate: Decimal
    # (rule_id, amount) per applied discount; amounts sum to discount_amount
    discounts: tuple[tuple[int, Decimal], ...] = field(default_factory=tuple)

    @property
    def discounted_subtotal(self) -> Decimal:
        return self.subtotal - self.discount_amount

    def to_dict(self) -> dict:
        return {
            "subtotal": format_amount(self.subtotal),
            "discount_amount": format_amount(self.discount_amount),
            "tax_amount": format_amount(self.tax_amount),
            "total": format_amount(self.total),
            "tax_rate": str(self.tax_rate),
            "discounts": [
                {"discount_id": rule_id, "amount": format_amount(amount)}
                for rule_id, amount in self.discounts
            ],
        }


def discount_effect(discount: AppliedDiscount, subtotal: Decimal) -> Decimal:
    """Unrounded monetary effect of one rule against the pre-discount subtotal."""
    value = to_decimal(discount.discount_value)
    if discount.discount_type == DISCOUNT_PERCENTAGE:
        return subtotal * value / HUNDRED
    if discount.discount_type == DISCOUNT_FIXED_AMOUNT:
        return value
    raise InvalidReference(
        f"Unsupported discount type {discount.discount_type!r}",
        details={"discount_id": discount.rule_id},
    )


def _allocate(effects: list[tuple[int, Decimal]], discount_amount: Decimal) -> tuple[tuple[int, Decimal], ...]:
    # Earlier rules are allocated first; rounding residue lands on the last rule that got a share.
    remaining = discount_amount
    shares: list[list] = []
    for rule_id, effect in effects:
        share = min(quantize(max(effect, ZERO)), remaining)
        remaining -= share
        shares.append([rule_id, share])
    if remaining > ZERO and shares:
        target = next((entry for entry in reversed(shares) if entry[1] > ZERO), shares[-1])
        target[1] += remaining
    return tuple((rule_id, amount) for rule_id, amount in shares)


def price(cart: Cart, applied_discounts: Iterable[AppliedDiscount], tax_rate) -> PricingResult:
    lines = cart.snapshot()
    if not lines:
        raise EmptyCart("Cart is empty")

    tax_rate = to_decimal(tax_rate)
    if tax_rate < ZERO:
        raise ValueError("tax_rate cannot be negative")

    subtotal = sum((line.line_total for line in lines), ZERO)

    effects = [(d.rule_id, discount_effect(d, subtotal)) for d in applied_discounts]
    raw_discount = sum((effect for _, effect in effects), ZERO)
    raw_discount = min(max(raw_discount, ZERO), subtotal)

    subtotal_q = quantize(subtotal)
    discount_q = min(quantize(raw_discount), subtotal_q)
    discounted = subtotal_q - discount_q
    tax_q = quantize(discounted * tax_rate)
    total = discounted + tax_q
    if max(subtotal_q, total) > MAX_AMOUNT:
        # Amounts are stored as Numeric(12, 2)
        raise InvalidReference(
            "Cart total exceeds the maximum sale amount",
            details={"subtotal": format_amount(subtotal_q), "total": format_amount(total),
                     "max_amount": format_amount(MAX_AMOUNT)},
        )

    return PricingResult(
        subtotal=subtotal_q,
        discount_amount=discount_q,
        tax_amount=tax_q,
        total=total,
        tax_rate=tax_rate,
        discounts=_allocate(effects, discount_q) if effects else (),
    )
