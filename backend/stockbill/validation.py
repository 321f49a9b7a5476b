from __future__ import annotations

from typing import Any


# Maximum price: Rs 99,99,99,999 per unit
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_INR = 999_999_999

# Upper bound for any single stock quantity or adjustment
MAX_QUANTITY = 1_000_000_000

# Ceiling for any line total or invoice subtotal (Rs 1,000 crore)
MAX_INVOICE_AMOUNT_INR = 10_000_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level missing product or invoice."""


class InsufficientStockError(Exception):
    """
    Raised when a requested quantity exceeds the stock on hand.

    Aborts the whole invoice: there is no partial fulfilment.
    """
    def __init__(self, *, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested

    @property
    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "available": self.available,
            "requested": self.requested,
        }


def coerce_int(field: str, value: Any) -> int:
    """
    Strict integer coercion for JSON input.

    Rejects booleans, floats, decimals and scientific notation so that a
    quantity of "2.5" or 1e3 never silently becomes an integer.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_bounded_int(
    field: str,
    value: Any,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    number = coerce_int(field, value)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    return number


def coerce_text(
    field: str,
    value: Any,
    *,
    max_length: int | None = None,
    allow_blank: bool = False,
) -> str | None:
    """Trim a string field; blank optional fields collapse to None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if not text:
        if allow_blank:
            return None
        raise ValidationError(f"{field} cannot be blank")
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def reject_unknown_fields(payload: dict, allowed: set[str]) -> None:
    for key in payload.keys():
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")


def require_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload
