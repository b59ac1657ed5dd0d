"""
Checkout error taxonomy.

Every error carries a stable machine code and the HTTP status the routes
answer with, so the API layer can render any of them uniformly.

Pricing/discount errors are recoverable at the register (the operator picks
something else). Commit-phase errors mean the whole commit failed and left
no partial state behind; the caller retries the whole commit.
"""
from __future__ import annotations


class CheckoutError(Exception):
    """Base class for checkout errors."""
    code = "checkout_error"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class InvalidReference(CheckoutError):
    """Unknown, inactive or foreign product / customer / discount id."""
    code = "invalid_reference"
    http_status = 400


class EmptyCart(CheckoutError):
    code = "empty_cart"
    http_status = 400


class DiscountRejected(CheckoutError):
    """A discount rule cannot be applied to the current cart."""
    code = "discount_rejected"
    http_status = 409


class AlreadyApplied(DiscountRejected):
    code = "already_applied"


class MinimumNotMet(DiscountRejected):
    code = "minimum_not_met"


class StaleProduct(CheckoutError):
    """A product in the cart no longer exists (or was deactivated) at commit time."""
    code = "stale_product"
    http_status = 404


class StaleCustomer(CheckoutError):
    code = "stale_customer"
    http_status = 404


class InsufficientStock(CheckoutError):
    """Raised under the 'reject' oversell policy."""
    code = "insufficient_stock"
    http_status = 409


class PersistenceFailure(CheckoutError):
    """The store rejected a write or timed out; nothing was applied."""
    code = "persistence_failure"
    http_status = 503


class StalePricing(CheckoutError):
    """The pricing passed to commit was computed for a different cart state."""
    code = "stale_pricing"
    http_status = 409
