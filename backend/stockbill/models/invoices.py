from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class Invoice(db.Model):
    """
    Immutable billing document.

    Totals are computed once by the InvoiceCompiler and never recalculated;
    only ``status`` changes after creation.

    INVARIANT: total_inr = subtotal_inr - discount_inr + tax_inr
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        db.CheckConstraint("subtotal_inr >= 0", name="ck_invoices_subtotal_non_negative"),
        db.CheckConstraint("discount_inr >= 0", name="ck_invoices_discount_non_negative"),
        db.CheckConstraint("tax_inr >= 0", name="ck_invoices_tax_non_negative"),
        db.CheckConstraint("total_inr >= 0", name="ck_invoices_total_non_negative"),
        db.Index("ix_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "INV-2025-0001")
    invoice_number = db.Column(db.String(32), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    subtotal_inr = db.Column(db.BigInteger, nullable=False)
    discount_inr = db.Column(db.BigInteger, nullable=False, default=0)
    tax_inr = db.Column(db.BigInteger, nullable=False)
    total_inr = db.Column(db.BigInteger, nullable=False)

    # Rate the tax was computed with, so later config changes do not blur history
    tax_rate_bps = db.Column(db.Integer, nullable=False)

    # pending, paid, cancelled
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        order_by="InvoiceLine.line_number",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "subtotal_inr": self.subtotal_inr,
            "discount_inr": self.discount_inr,
            "tax_inr": self.tax_inr,
            "tax_rate_bps": self.tax_rate_bps,
            "total_inr": self.total_inr,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "created_by_name": self.created_by.name if self.created_by else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data

class InvoiceLine(db.Model):
    """
    Denormalized line snapshot.

    Name, SKU and unit price are copied from the product at creation time so
    historical invoices stay accurate after the product is edited or deleted.
    """
    __tablename__ = "invoice_lines"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "line_number", name="uq_invoice_lines_invoice_line"),
        db.CheckConstraint("quantity >= 1", name="ck_invoice_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    # Loose reference; the product may be deleted later
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_inr = db.Column(db.Integer, nullable=False)
    line_total_inr = db.Column(db.BigInteger, nullable=False)

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "quantity": self.quantity,
            "unit_price_inr": self.unit_price_inr,
            "line_total_inr": self.line_total_inr,
        }
