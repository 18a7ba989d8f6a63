"""Error taxonomy shared by the domain, services and routes.

Validation errors are caller-correctable and raised before anything is
persisted. State errors come from a guard inside a state machine and leave
the entity untouched. Collaborator errors surface from the store unchanged
so the caller can decide between retry and abort.
"""

from __future__ import annotations

from typing import Any


class PosError(Exception):
    """Base class carrying a stable ``code`` and an HTTP status."""

    code = "POS_ERROR"
    status_code = 400
    default_message = "request rejected"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(PosError):
    code = "VALIDATION"
    status_code = 422


class EmptyCart(ValidationError):
    code = "EMPTY_CART"
    default_message = "cart is empty"


class MissingTable(ValidationError):
    code = "MISSING_TABLE"
    default_message = "table number is required for dine-in orders"


class MissingDeliveryInfo(ValidationError):
    code = "MISSING_DELIVERY_INFO"
    default_message = "contact info and platform are required for delivery orders"


class InvalidQuantity(ValidationError):
    code = "INVALID_QUANTITY"
    default_message = "quantity must be a positive integer"


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"
    default_message = "payment amount is not acceptable"


class ItemUnavailable(ValidationError):
    code = "ITEM_UNAVAILABLE"
    default_message = "menu item is not available"


class UnknownModifier(ValidationError):
    code = "UNKNOWN_MODIFIER"
    default_message = "modifier is not offered for this menu item"


class StateError(PosError):
    code = "STATE"
    status_code = 409


class InvalidTransition(StateError):
    code = "INVALID_TRANSITION"
    default_message = "invalid transition"


class AlreadyPaid(StateError):
    code = "ALREADY_PAID"
    default_message = "order is already paid"


class OrderCancelled(StateError):
    code = "ORDER_CANCELLED"
    default_message = "order is cancelled"


class CollaboratorError(PosError):
    code = "COLLABORATOR"
    status_code = 502


class Unavailable(CollaboratorError):
    code = "UNAVAILABLE"
    status_code = 503
    default_message = "store unavailable, retry later"


class Conflict(CollaboratorError):
    code = "CONFLICT"
    status_code = 409
    default_message = "conflicting write"


class NotFound(PosError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "not found"


class InvariantViolation(PosError):
    """A broken invariant is a defect, never a user-correctable error."""

    code = "INVARIANT_VIOLATION"
    status_code = 500
    default_message = "invariant violated"
