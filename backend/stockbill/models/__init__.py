# Overview: Re-exports every model so Alembic and the services import from one place.

from .auth import User, SessionToken
from .catalog import Product
from .invoices import Invoice, InvoiceLine

__all__ = [
    "User",
    "SessionToken",
    "Product",
    "Invoice",
    "InvoiceLine",
]
