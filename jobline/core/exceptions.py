"""Expected failure modes of the case-management core.

Services raise these for outcomes a caller is supposed to handle. Anything
else (a dropped database connection, a programming error) is left to
propagate and ends up as a bare 500.
"""
from decimal import Decimal
from typing import Optional


class AppError(Exception):
    """Base exception for expected application errors."""
    status_code: int = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"detail": self.message, "field": self.field}


class ValidationError(AppError):
    """Malformed or out-of-range input."""
    status_code = 400


class FeeRangeError(ValidationError):
    """A proposed fee falls outside its template's [min, max] range."""

    def __init__(self, min_price: Decimal, max_price: Decimal, currency: str = "USD"):
        super().__init__(
            f"Final fee amount must be between {min_price} and {max_price} {currency}",
            field="final_fee_amount",
        )
        self.min_price = min_price
        self.max_price = max_price
        self.currency = currency


class NotFoundError(AppError):
    """Entity does not exist inside the caller's tenant."""
    status_code = 404

    def __init__(self, entity: str, field: Optional[str] = None):
        super().__init__(f"{entity} not found", field=field)
        self.entity = entity


class CrossTenantError(NotFoundError):
    """
    A referenced entity belongs to another tenant.

    Rendered exactly like NotFoundError so the caller cannot tell a foreign
    row from a missing one; the distinction only shows up in server logs.
    """

    def __init__(self, entity: str, entity_id=None, field: Optional[str] = None):
        super().__init__(entity, field=field)
        self.entity_id = entity_id


class UnauthenticatedError(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", action: Optional[str] = None):
        super().__init__(message, field=action)


class ConflictError(AppError):
    """Concurrent or dependent state prevents the operation."""
    status_code = 409
