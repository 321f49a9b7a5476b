# Overview: Builds request-scoped service objects bound to the Flask-SQLAlchemy session.

from flask import current_app

from ..extensions import db
from .analytics_service import AnalyticsService
from .catalog_service import CatalogLedger
from .invoice_service import InvoiceCompiler


def catalog_ledger() -> CatalogLedger:
    config = current_app.config
    return CatalogLedger(
        db.session,
        low_stock_default=config["LOW_STOCK_DEFAULT"],
        default_per_page=config["PRODUCTS_PER_PAGE"],
        max_per_page=config["MAX_PER_PAGE"],
    )


def invoice_compiler() -> InvoiceCompiler:
    config = current_app.config
    return InvoiceCompiler(
        db.session,
        catalog_ledger(),
        tax_rate_bps=config["TAX_RATE_BPS"],
        default_per_page=config["INVOICES_PER_PAGE"],
        max_per_page=config["MAX_PER_PAGE"],
    )


def analytics() -> AnalyticsService:
    return AnalyticsService(db.session, catalog_ledger())
