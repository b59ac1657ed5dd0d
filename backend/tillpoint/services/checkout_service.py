"""
Checkout Service - turns a priced cart into a committed sale.

One commit is one database transaction:
    1. allocate a receipt number and write the Sale header
    2. write one SaleItem per cart line at the cart's captured unit price
    3. write the SaleDiscount breakdown
    4. decrement stock with conditional UPDATEs (see inventory_service)
    5. accrue customer loyalty with an in-database increment
Either all of it commits or none of it does. Contention errors retry the
whole unit; anything else the store rejects surfaces as PersistenceFailure
after a rollback.

The service is stateless. Clearing the cart after a successful commit is the
caller's job.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, Sale, SaleDiscount, SaleItem
from tillpoint.money import ZERO, format_amount, quantize
from . import catalog_service, customer_service, discount_service, inventory_service, store_service
from .cart import Cart, CartLine
from .concurrency import begin_write_transaction, retryable_with_conflicts, run_with_retry
from .errors import (
    CheckoutError,
    EmptyCart,
    InvalidReference,
    PersistenceFailure,
    StaleCustomer,
    StalePricing,
    StaleProduct,
)
from .pricing_service import PricingResult, price
from .receipt_service import next_receipt_number

PAYMENT_METHODS = ("cash", "card")


# =============================================================================
# Cart assembly (request payload -> Cart)
# =============================================================================

def build_cart(
    store_id: int,
    lines: list[dict],
    *,
    customer_id: int | None = None,
    discount_ids: list[int] | None = None,
) -> Cart:
    """
    Rebuild a cart from a {product_id, quantity} payload.

    Products are resolved through the catalog at their current price.
    Discounts are applied in the given order and may raise DiscountRejected.
    """
    store_service.get_store(store_id)
    cart = Cart(store_id=store_id)

    for raw in lines or []:
        product_id = raw.get("product_id")
        quantity = raw.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidReference(
                "quantity must be a positive integer",
                details={"product_id": product_id, "quantity": quantity},
            )
        product = catalog_service.get_product(store_id, product_id) if isinstance(product_id, int) else None
        if product is None:
            raise InvalidReference("Product not found", details={"product_id": product_id})
        cart.add_line(product, quantity)

    if customer_id is not None:
        if customer_service.get_customer(customer_id, store_id=store_id) is None:
            raise InvalidReference("Customer not found", details={"customer_id": customer_id})
        cart.attach_customer(customer_id)

    for rule_id in discount_ids or []:
        discount_service.apply(cart, discount_service.get_rule(store_id, rule_id))

    return cart


def quote(cart: Cart) -> PricingResult:
    """Price a cart with its applied discounts and the store's tax rate."""
    return price(cart, cart.applied_discounts.values(), store_service.tax_rate(cart.store_id))


# =============================================================================
# Commit
# =============================================================================

def _validate_commit_inputs(cart: Cart, lines: list[CartLine], pricing: PricingResult,
                            payment_method: str, staff_id: str) -> None:
    if not lines:
        raise EmptyCart("Cannot commit an empty cart")
    if payment_method not in PAYMENT_METHODS:
        raise InvalidReference(
            "Unsupported payment method",
            details={"payment_method": payment_method, "allowed": list(PAYMENT_METHODS)},
        )
    if not staff_id:
        raise InvalidReference("staff_id is required")

    # Lines, applied discounts and the store tax rate must all still match the quote
    current = quote(cart)
    if pricing != current:
        raise StalePricing(
            "Pricing does not match cart; re-price before committing",
            details={"pricing": pricing.to_dict(), "current": current.to_dict()},
        )


def _check_products(store_id: int, lines: list[CartLine]) -> None:
    ids = [line.product_id for line in lines]
    found = {
        pid for (pid,) in db.session.query(Product.id).filter(
            Product.store_id == store_id,
            Product.id.in_(ids),
            Product.is_active.is_(True),
        )
    }
    missing = [pid for pid in ids if pid not in found]
    if missing:
        raise StaleProduct("Products no longer available", details={"product_ids": missing})


def _check_customer(store_id: int, customer_id: int | None) -> None:
    if customer_id is None:
        return
    if customer_service.get_customer(customer_id, store_id=store_id) is None:
        raise StaleCustomer("Customer no longer exists", details={"customer_id": customer_id})


def _create_sale(store_id: int, staff_id: str, customer_id: int | None, pricing: PricingResult,
                 payment_method: str, idempotency_key: str | None, notes: str | None) -> Sale:
    sale = Sale(
        store_id=store_id,
        staff_id=staff_id,
        customer_id=customer_id,
        receipt_number=next_receipt_number(store_id),
        idempotency_key=idempotency_key,
        subtotal=pricing.subtotal,
        discount_amount=pricing.discount_amount,
        tax_amount=pricing.tax_amount,
        total_amount=pricing.total,
        payment_method=payment_method,
        payment_status="completed",
        notes=notes,
    )
    db.session.add(sale)
    db.session.flush()
    return sale


def _create_sale_item(sale: Sale, line: CartLine) -> SaleItem:
    item = SaleItem(
        sale_id=sale.id,
        product_id=line.product_id,
        quantity=line.quantity,
        unit_price=line.unit_price,
        line_total=line.line_total,
    )
    db.session.add(item)
    return item


def _find_by_idempotency_key(store_id: int, key: str) -> Sale | None:
    return db.session.query(Sale).filter_by(store_id=store_id, idempotency_key=key).first()


def commit(
    cart: Cart,
    pricing: PricingResult,
    payment_method: str,
    staff_id: str,
    customer_id: int | None = None,
    *,
    idempotency_key: str | None = None,
    notes: str | None = None,
) -> Sale:
    """
    Commit a priced cart as a sale.

    customer_id defaults to the customer attached to the cart. Passing an
    idempotency_key that was already committed for the store returns that
    sale untouched, so a register can safely retry after a lost response.
    """
    store_id = cart.store_id
    lines = cart.snapshot()
    customer_id = customer_id if customer_id is not None else cart.customer_id
    _validate_commit_inputs(cart, lines, pricing, payment_method, staff_id)

    policy = inventory_service.oversell_policy()
    config = current_app.config

    def _op() -> tuple[Sale, bool]:
        begin_write_transaction()

        if idempotency_key:
            existing = _find_by_idempotency_key(store_id, idempotency_key)
            if existing is not None:
                db.session.commit()
                return existing, False

        _check_products(store_id, lines)
        _check_customer(store_id, customer_id)

        sale = _create_sale(store_id, staff_id, customer_id, pricing, payment_method, idempotency_key, notes)

        for line in lines:
            _create_sale_item(sale, line)
        for rule_id, amount in pricing.discounts:
            db.session.add(SaleDiscount(sale_id=sale.id, discount_rule_id=rule_id, amount=amount))
        db.session.flush()

        for line in lines:
            inventory_service.decrement_stock(
                store_id, line.product_id, line.quantity, sale_id=sale.id, policy=policy,
            )

        if customer_id is not None:
            customer_service.apply_loyalty_accrual(
                customer_id, pricing.total, customer_service.loyalty_points_for(pricing.total),
            )

        db.session.commit()
        return sale, True

    try:
        sale, created = run_with_retry(
            _op,
            attempts=config.get("CHECKOUT_COMMIT_ATTEMPTS", 3),
            backoff_base=config.get("CHECKOUT_RETRY_BACKOFF", 0.1),
            retry_on=retryable_with_conflicts(),
        )
    except CheckoutError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Sale commit failed for store %s; rolled back", store_id)
        raise PersistenceFailure(
            "Could not record sale; no changes were made. Retry the commit.",
            details={"store_id": store_id},
        ) from exc

    if created:
        current_app.logger.info(
            "Committed sale %s receipt=%s total=%s lines=%d customer=%s",
            sale.id, sale.receipt_number, format_amount(sale.total_amount), len(lines), customer_id,
        )
    else:
        current_app.logger.info(
            "Idempotent replay of sale %s (key=%s); nothing written", sale.id, idempotency_key,
        )
    return sale


# =============================================================================
# Read side / verification
# =============================================================================

def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def verify_sale(sale_id: int) -> list[str]:
    """
    Re-derive the committed-sale invariants from stored rows.

    Returns human-readable violations; an empty list means the sale is consistent.
    """
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise InvalidReference("Sale not found", details={"sale_id": sale_id})

    problems: list[str] = []
    items = db.session.query(SaleItem).filter_by(sale_id=sale.id).all()
    if not items:
        problems.append("sale has no items")

    items_total = quantize(sum((Decimal(i.line_total) for i in items), ZERO))
    if items_total != quantize(sale.subtotal):
        problems.append(f"item totals {items_total} != subtotal {format_amount(sale.subtotal)}")

    for item in items:
        expected = quantize(Decimal(item.unit_price) * item.quantity)
        if quantize(item.line_total) != expected:
            problems.append(f"item {item.id} line_total {format_amount(item.line_total)} != {expected}")

    expected_total = quantize(sale.subtotal) - quantize(sale.discount_amount) + quantize(sale.tax_amount)
    if quantize(sale.total_amount) != expected_total:
        problems.append(f"total {format_amount(sale.total_amount)} != subtotal - discount + tax ({expected_total})")

    if not (ZERO <= quantize(sale.discount_amount) <= quantize(sale.subtotal)):
        problems.append("discount_amount outside [0, subtotal]")

    shares = db.session.query(SaleDiscount).filter_by(sale_id=sale.id).all()
    if shares:
        shares_total = quantize(sum((Decimal(s.amount) for s in shares), ZERO))
        if shares_total != quantize(sale.discount_amount):
            problems.append(f"discount breakdown {shares_total} != discount_amount {format_amount(sale.discount_amount)}")

    duplicates = (
        db.session.query(Sale.id)
        .filter(Sale.store_id == sale.store_id, Sale.receipt_number == sale.receipt_number, Sale.id != sale.id)
        .count()
    )
    if duplicates:
        problems.append(f"receipt number {sale.receipt_number} is not unique")

    return problems
