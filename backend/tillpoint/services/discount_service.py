"""
Discount Evaluator.

Decides whether a discount rule may be applied to a cart. The monetary
effect is not computed here; pricing_service derives it from the final
subtotal.

Stacking policy: additive. Every applied rule is evaluated against the
pre-discount subtotal and the effects are summed, then clamped so the
discounted subtotal never drops below zero. Two 10% rules give 20% off,
not 19%.
"""
from __future__ import annotations

from ..extensions import db
from ..models import DiscountRule
from ..models.promotions import DISCOUNT_TYPES
from tillpoint.money import format_amount, to_decimal
from .cart import AppliedDiscount, Cart
from .errors import AlreadyApplied, InvalidReference, MinimumNotMet


def list_active_rules(store_id: int) -> list[DiscountRule]:
    return (
        db.session.query(DiscountRule)
        .filter_by(store_id=store_id, is_active=True)
        .order_by(DiscountRule.name.asc(), DiscountRule.id.asc())
        .all()
    )


def get_rule(store_id: int, rule_id: int) -> DiscountRule:
    rule = db.session.query(DiscountRule).filter_by(id=rule_id, store_id=store_id).first()
    if rule is None:
        raise InvalidReference("Discount not found", details={"discount_id": rule_id})
    return rule


def apply(cart: Cart, rule: DiscountRule) -> AppliedDiscount:
    """
    Apply a rule to the cart.

    Raises AlreadyApplied if the rule is already on the cart, MinimumNotMet if
    the cart's pre-discount subtotal is below the rule's minimum order amount.
    The cart is unchanged when a rule is rejected.
    """
    if rule is None:
        raise InvalidReference("Discount not found")
    if rule.store_id != cart.store_id:
        raise InvalidReference("Discount does not belong to store", details={"discount_id": rule.id})
    if not rule.is_active:
        raise InvalidReference("Discount is inactive", details={"discount_id": rule.id})
    if rule.discount_type not in DISCOUNT_TYPES:
        raise InvalidReference(
            f"Unsupported discount type {rule.discount_type!r}",
            details={"discount_id": rule.id},
        )

    if rule.id in cart.applied_discounts:
        raise AlreadyApplied("Discount already applied", details={"discount_id": rule.id})

    min_amount = to_decimal(rule.min_order_amount) if rule.min_order_amount else None
    if min_amount is not None:
        subtotal = cart.subtotal
        if subtotal < min_amount:
            raise MinimumNotMet(
                f"Minimum order amount of {format_amount(min_amount)} required for this discount",
                details={
                    "discount_id": rule.id,
                    "min_order_amount": format_amount(min_amount),
                    "subtotal": format_amount(subtotal),
                },
            )

    applied = AppliedDiscount(
        rule_id=rule.id,
        name=rule.name,
        discount_type=rule.discount_type,
        discount_value=to_decimal(rule.discount_value),
        min_order_amount=min_amount,
    )
    cart.applied_discounts[rule.id] = applied
    return applied


def remove(cart: Cart, rule_id: int) -> None:
    if cart.applied_discounts.pop(rule_id, None) is None:
        raise InvalidReference("Discount is not applied", details={"discount_id": rule_id})


def revalidate(cart: Cart) -> list[AppliedDiscount]:
    """
    Drop applied discounts whose minimum order amount the cart no longer meets.

    Call after editing lines. Returns the dropped discounts so the operator can be told.
    """
    subtotal = cart.subtotal
    dropped = [
        d for d in cart.applied_discounts.values()
        if d.min_order_amount is not None and subtotal < d.min_order_amount
    ]
    for d in dropped:
        del cart.applied_discounts[d.rule_id]
    return dropped
