# Overview: Explicit request schemas; every API body is parsed here before reaching a service.

"""
Request schemas for the catalog and invoice APIs.

Each payload class exposes a ``from_json`` constructor that validates and
normalizes a decoded JSON body. Failures raise ValidationError, which the
routes translate into HTTP 400 before any service code runs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .validation import (
    MAX_PRICE_INR,
    MAX_QUANTITY,
    ValidationError,
    coerce_bounded_int,
    coerce_text,
    reject_unknown_fields,
    require_object,
)

INVOICE_STATUSES = ("pending", "paid", "cancelled")

# Statuses a caller may choose when creating an invoice
CREATE_INVOICE_STATUSES = ("pending", "paid")

MAX_INVOICE_ITEMS = 200


@dataclass(frozen=True)
class ProductPayload:
    """
    Product create/update body.

    ``fields`` only contains keys the caller actually sent, so the same
    schema serves POST (partial=False) and PUT (partial=True).
    """
    fields: dict

    WRITABLE = {"name", "category", "price_inr", "stock", "low_stock_threshold", "description", "sku"}
    REQUIRED_ON_CREATE = {"name", "category", "price_inr"}

    @classmethod
    def from_json(cls, payload: Any, *, partial: bool) -> "ProductPayload":
        payload = require_object(payload)
        reject_unknown_fields(payload, cls.WRITABLE)

        if not partial:
            missing = sorted(f for f in cls.REQUIRED_ON_CREATE if payload.get(f) is None)
            if missing:
                raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        fields: dict = {}
        for key, raw in payload.items():
            if key in ("name", "category"):
                if raw is None:
                    raise ValidationError(f"{key} cannot be null")
                fields[key] = coerce_text(key, raw, max_length=255 if key == "name" else 100)
            elif key == "description":
                fields[key] = coerce_text(key, raw, allow_blank=True)
            elif key == "sku":
                fields[key] = coerce_text(key, raw, max_length=64, allow_blank=True)
            elif key == "price_inr":
                if raw is None:
                    raise ValidationError("price_inr cannot be null")
                fields[key] = coerce_bounded_int(key, raw, minimum=0, maximum=MAX_PRICE_INR)
            else:
                # stock, low_stock_threshold
                if raw is None:
                    raise ValidationError(f"{key} cannot be null")
                fields[key] = coerce_bounded_int(key, raw, minimum=0, maximum=MAX_QUANTITY)

        return cls(fields=fields)


@dataclass(frozen=True)
class StockAdjustmentPayload:
    quantity: int

    @classmethod
    def from_json(cls, payload: Any) -> "StockAdjustmentPayload":
        payload = require_object(payload)
        reject_unknown_fields(payload, {"quantity"})
        if payload.get("quantity") is None:
            raise ValidationError("quantity is required")
        quantity = coerce_bounded_int(
            "quantity", payload["quantity"], minimum=-MAX_QUANTITY, maximum=MAX_QUANTITY
        )
        return cls(quantity=quantity)


@dataclass(frozen=True)
class InvoiceItemPayload:
    product_id: int
    quantity: int

    @classmethod
    def from_json(cls, payload: Any, *, index: int) -> "InvoiceItemPayload":
        if not isinstance(payload, dict):
            raise ValidationError(f"items[{index}] must be an object")
        reject_unknown_fields(payload, {"product_id", "quantity"})
        if payload.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if payload.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")
        product_id = coerce_bounded_int(f"items[{index}].product_id", payload["product_id"], minimum=1)
        quantity = coerce_bounded_int(
            f"items[{index}].quantity", payload["quantity"], minimum=1, maximum=MAX_QUANTITY
        )
        return cls(product_id=product_id, quantity=quantity)


@dataclass(frozen=True)
class CreateInvoicePayload:
    customer_name: str
    items: list[InvoiceItemPayload]
    customer_email: str | None = None
    customer_phone: str | None = None
    discount_inr: int = 0
    status: str = "paid"

    @classmethod
    def from_json(cls, payload: Any) -> "CreateInvoicePayload":
        payload = require_object(payload)
        reject_unknown_fields(
            payload,
            {"customer_name", "customer_email", "customer_phone", "items", "discount_inr", "status"},
        )

        if payload.get("customer_name") is None:
            raise ValidationError("customer_name is required")
        customer_name = coerce_text("customer_name", payload["customer_name"], max_length=255)

        customer_email = coerce_text(
            "customer_email", payload.get("customer_email"), max_length=255, allow_blank=True
        )
        if customer_email is not None:
            customer_email = customer_email.lower()
            if "@" not in customer_email:
                raise ValidationError("customer_email must be a valid email address")

        customer_phone = coerce_text(
            "customer_phone", payload.get("customer_phone"), max_length=32, allow_blank=True
        )

        raw_items = payload.get("items")
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError("items must be a non-empty list")
        if len(raw_items) > MAX_INVOICE_ITEMS:
            raise ValidationError(f"items cannot exceed {MAX_INVOICE_ITEMS} entries")
        items = [InvoiceItemPayload.from_json(raw, index=i) for i, raw in enumerate(raw_items)]

        discount_raw = payload.get("discount_inr")
        discount_inr = 0
        if discount_raw is not None:
            discount_inr = coerce_bounded_int("discount_inr", discount_raw, minimum=0, maximum=MAX_PRICE_INR)

        status = payload.get("status") or "paid"
        if status not in CREATE_INVOICE_STATUSES:
            raise ValidationError(
                f"status must be one of: {', '.join(CREATE_INVOICE_STATUSES)}"
            )

        return cls(
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            items=items,
            discount_inr=discount_inr,
            status=status,
        )


@dataclass(frozen=True)
class InvoiceStatusPayload:
    status: str

    @classmethod
    def from_json(cls, payload: Any) -> "InvoiceStatusPayload":
        payload = require_object(payload)
        reject_unknown_fields(payload, {"status"})
        status = payload.get("status")
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
        return cls(status=status)


@dataclass(frozen=True)
class RegisterPayload:
    name: str
    email: str
    password: str

    @classmethod
    def from_json(cls, payload: Any) -> "RegisterPayload":
        payload = require_object(payload)
        reject_unknown_fields(payload, {"name", "email", "password"})
        for key in ("name", "email", "password"):
            if payload.get(key) is None:
                raise ValidationError(f"{key} is required")
        name = coerce_text("name", payload["name"], max_length=120)
        email = coerce_text("email", payload["email"], max_length=255).lower()
        if "@" not in email:
            raise ValidationError("email must be a valid email address")
        password = payload["password"]
        if not isinstance(password, str):
            raise ValidationError("password must be a string")
        return cls(name=name, email=email, password=password)


@dataclass(frozen=True)
class LoginPayload:
    email: str
    password: str

    @classmethod
    def from_json(cls, payload: Any) -> "LoginPayload":
        payload = require_object(payload)
        email = payload.get("email")
        password = payload.get("password")
        if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
            raise ValidationError("email and password required")
        return cls(email=email.strip().lower(), password=password)
