# Overview: Service-layer operations for invoices; computes totals and reconciles stock.

"""
Invoice Compiler

Turns a validated CreateInvoicePayload into a persisted Invoice and the
matching stock decrements.

Flow (one database transaction):
1. Validate - every product exists and holds enough stock. Nothing is
   written yet, so a failure here leaves the catalog untouched.
2. Price - unit prices are read once and frozen into the line snapshots.
3. Total - subtotal, tax and grand total (see compute_totals).
4. Persist - invoice and lines are inserted, then each product is
   decremented with a conditional UPDATE (stock >= quantity).
5. Commit - or roll everything back if any conditional decrement fails,
   which only happens when a concurrent invoice consumed the stock between
   steps 1 and 4. No oversell, no orphan invoice.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..models import Invoice, InvoiceLine, Product
from ..schemas import CreateInvoicePayload, INVOICE_STATUSES
from ..time_utils import end_of_day, is_date_only, parse_iso_datetime, utcnow
from ..validation import (
    MAX_INVOICE_AMOUNT_INR,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from .catalog_service import CatalogLedger, escape_like, paginate
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)

# India GST equivalent, flat across all categories
DEFAULT_TAX_RATE_BPS = 1800

INVOICE_NUMBER_ATTEMPTS = 3

INVOICE_NUMBER_CONSTRAINT = "uq_invoices_invoice_number"


class InvoiceNumberCollision(Exception):
    """Another invoice took the number allocated for this one."""


def is_invoice_number_collision(exc: IntegrityError) -> bool:
    """
    True when ``exc`` is the unique violation on invoices.invoice_number.

    PostgreSQL and MySQL name the constraint; SQLite names the column.
    """
    message = str(exc.orig)
    return INVOICE_NUMBER_CONSTRAINT in message or "invoices.invoice_number" in message


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal_inr: int
    discount_inr: int
    tax_inr: int
    total_inr: int
    tax_rate_bps: int


def compute_tax(taxable_inr: int, tax_rate_bps: int) -> int:
    """Tax on ``taxable_inr`` rounded half-up to the nearest rupee."""
    return (taxable_inr * tax_rate_bps + 5_000) // 10_000


def compute_totals(line_totals: list[int], discount_inr: int = 0, tax_rate_bps: int = DEFAULT_TAX_RATE_BPS) -> InvoiceTotals:
    """
    subtotal = sum(line totals)
    tax      = round((subtotal - discount) * rate)
    total    = subtotal - discount + tax

    The discount is a flat amount; it may not exceed the subtotal.
    """
    if discount_inr < 0:
        raise ValidationError("discount_inr must be >= 0")

    subtotal = sum(line_totals)
    if subtotal > MAX_INVOICE_AMOUNT_INR:
        raise ValidationError(f"Invoice subtotal cannot exceed {MAX_INVOICE_AMOUNT_INR}")
    if discount_inr > subtotal:
        raise ValidationError("discount_inr cannot exceed the subtotal")

    taxable = subtotal - discount_inr
    tax = compute_tax(taxable, tax_rate_bps)
    return InvoiceTotals(
        subtotal_inr=subtotal,
        discount_inr=discount_inr,
        tax_inr=tax,
        total_inr=subtotal - discount_inr + tax,
        tax_rate_bps=tax_rate_bps,
    )


def format_invoice_number(year: int, sequence: int) -> str:
    return f"INV-{year}-{sequence:04d}"


class InvoiceCompiler:
    def __init__(
        self,
        session,
        catalog: CatalogLedger | None = None,
        *,
        tax_rate_bps: int = DEFAULT_TAX_RATE_BPS,
        default_per_page: int = 20,
        max_per_page: int = 100,
    ):
        self.session = session
        self.catalog = catalog or CatalogLedger(session)
        self.tax_rate_bps = tax_rate_bps
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page

    def next_invoice_number(self, year: int) -> str:
        """INV-<year>-<count of this year's invoices + 1>, zero-padded to 4 digits."""
        prefix = f"INV-{year}-"
        count = (
            self.session.query(func.count(Invoice.id))
            .filter(Invoice.invoice_number.like(f"{prefix}%"))
            .scalar()
            or 0
        )
        return format_invoice_number(year, count + 1)

    def _build_lines(self, payload: CreateInvoicePayload) -> tuple[list[InvoiceLine], dict[int, int]]:
        """
        Validation phase: no writes.

        Returns the line snapshots and the total requested quantity per
        product (a product listed twice is checked against its combined
        quantity).
        """
        requested: dict[int, int] = {}
        for item in payload.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        products: dict[int, Product] = {}
        for product_id, quantity in requested.items():
            product = self.session.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            if product.stock < quantity:
                raise InsufficientStockError(
                    product_id=product.id,
                    product_name=product.name,
                    available=product.stock,
                    requested=quantity,
                )
            products[product_id] = product

        lines = []
        for i, item in enumerate(payload.items):
            product = products[item.product_id]
            line_total = item.quantity * product.price_inr
            if line_total > MAX_INVOICE_AMOUNT_INR:
                raise ValidationError(
                    f"items[{i}] total cannot exceed {MAX_INVOICE_AMOUNT_INR}"
                )
            lines.append(
                InvoiceLine(
                    line_number=i + 1,
                    product_id=product.id,
                    product_name=product.name,
                    product_sku=product.sku,
                    quantity=item.quantity,
                    unit_price_inr=product.price_inr,
                    line_total_inr=line_total,
                )
            )
        return lines, requested

    def create_invoice(
        self,
        payload: CreateInvoicePayload,
        *,
        created_by_user_id: int,
        now: datetime | None = None,
    ) -> Invoice:
        """
        Create an invoice and decrement stock atomically.

        Raises:
            NotFoundError: A requested product does not exist
            InsufficientStockError: A product holds less than requested
            ValidationError: Discount exceeds the subtotal
            ConflictError: Invoice number could not be allocated
        """
        created_at = now or utcnow()

        def _op() -> Invoice:
            lines, requested = self._build_lines(payload)
            totals = compute_totals(
                [line.line_total_inr for line in lines],
                payload.discount_inr,
                self.tax_rate_bps,
            )

            invoice = Invoice(
                invoice_number=self.next_invoice_number(created_at.year),
                customer_name=payload.customer_name,
                customer_email=payload.customer_email,
                customer_phone=payload.customer_phone,
                subtotal_inr=totals.subtotal_inr,
                discount_inr=totals.discount_inr,
                tax_inr=totals.tax_inr,
                total_inr=totals.total_inr,
                tax_rate_bps=totals.tax_rate_bps,
                status=payload.status,
                created_by_user_id=created_by_user_id,
                created_at=created_at,
                updated_at=created_at,
                lines=lines,
            )
            self.session.add(invoice)
            # Surfaces an invoice_number collision before any stock moves
            try:
                self.session.flush()
            except IntegrityError as e:
                if not is_invoice_number_collision(e):
                    raise
                logger.warning("Invoice number %s already taken; recounting", invoice.invoice_number)
                raise InvoiceNumberCollision(invoice.invoice_number) from e

            for product_id, quantity in requested.items():
                if not self.catalog.reserve(product_id, quantity):
                    self.session.rollback()
                    product = self.session.get(Product, product_id)
                    logger.warning(
                        "Stock reservation failed for product id=%s; invoice rolled back",
                        product_id,
                    )
                    if product is None:
                        raise NotFoundError(f"Product {product_id} not found")
                    raise InsufficientStockError(
                        product_id=product.id,
                        product_name=product.name,
                        available=product.stock,
                        requested=quantity,
                    )

            self.session.commit()
            return invoice

        try:
            invoice = run_with_retry(
                self.session,
                _op,
                attempts=INVOICE_NUMBER_ATTEMPTS,
                retry_on=(InvoiceNumberCollision,),
            )
        except InvoiceNumberCollision:
            raise ConflictError("Could not allocate a unique invoice number; retry the request")
        except (NotFoundError, InsufficientStockError, ValidationError, IntegrityError):
            self.session.rollback()
            raise

        logger.info(
            "Created invoice %s total_inr=%s lines=%s",
            invoice.invoice_number,
            invoice.total_inr,
            len(invoice.lines),
        )
        return invoice

    def get(self, invoice_id: int) -> Invoice:
        invoice = self.session.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def list_invoices(
        self,
        *,
        status: str | None = None,
        search: str | None = None,
        start: str | None = None,
        end: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> dict:
        """
        Paginated invoice history, newest first.

        - status: exact match; "all" disables the filter
        - search: case-insensitive substring of number, customer name or email
        - start/end: inclusive ISO-8601 bounds on created_at; a date-only end
          covers that whole day
        """
        query = self.session.query(Invoice)

        if status and status != "all":
            if status not in INVOICE_STATUSES:
                raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
            query = query.filter(Invoice.status == status)

        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(
                or_(
                    Invoice.invoice_number.ilike(pattern, escape="\\"),
                    Invoice.customer_name.ilike(pattern, escape="\\"),
                    Invoice.customer_email.ilike(pattern, escape="\\"),
                )
            )

        start_dt, end_dt = _parse_range(start, end)
        if start_dt:
            query = query.filter(Invoice.created_at >= start_dt)
        if end_dt:
            query = query.filter(Invoice.created_at <= end_dt)

        query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())

        result = paginate(
            query,
            page=page,
            per_page=per_page,
            default_per_page=self.default_per_page,
            max_per_page=self.max_per_page,
        )
        result["items"] = result.pop("rows")
        return result

    def update_status(self, invoice_id: int, status: str) -> Invoice:
        """
        Move an invoice between pending, paid and cancelled.

        Stock is never restored on cancellation.
        """
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")

        invoice = self.get(invoice_id)
        previous = invoice.status
        invoice.status = status
        self.session.commit()

        logger.info("Invoice %s status %s -> %s", invoice.invoice_number, previous, status)
        return invoice


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates")

    if end_dt is not None and is_date_only(end):
        end_dt = end_of_day(end_dt)
    return start_dt, end_dt
