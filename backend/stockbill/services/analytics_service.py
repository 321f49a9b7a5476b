# Overview: Service-layer read-only revenue analytics over paid invoices.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import case, func

from ..models import Invoice, InvoiceLine, Product
from ..time_utils import start_of_day, utcnow
from .catalog_service import CatalogLedger

REVENUE_STATUS = "paid"

MAX_SALES_DAYS = 366


class AnalyticsService:
    """
    Aggregations for the dashboard and charts.

    Only ``paid`` invoices count as revenue. Nothing here writes.
    """

    def __init__(self, session, catalog: CatalogLedger | None = None):
        self.session = session
        self.catalog = catalog or CatalogLedger(session)

    def _revenue_since(self, since: datetime) -> int:
        total = (
            self.session.query(func.coalesce(func.sum(Invoice.total_inr), 0))
            .filter(Invoice.status == REVENUE_STATUS, Invoice.created_at >= since)
            .scalar()
        )
        return int(total or 0)

    def dashboard(self, now: datetime | None = None) -> dict:
        now = now or utcnow()
        start_of_today = start_of_day(now)
        start_of_week = now - timedelta(days=7)
        start_of_month = start_of_today.replace(day=1)

        recent = (
            self.session.query(Invoice)
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .limit(5)
            .all()
        )

        return {
            "revenue": {
                "daily": self._revenue_since(start_of_today),
                "weekly": self._revenue_since(start_of_week),
                "monthly": self._revenue_since(start_of_month),
            },
            "counts": {
                "total_products": self.session.query(func.count(Product.id)).scalar() or 0,
                "total_invoices": self.session.query(func.count(Invoice.id)).scalar() or 0,
                "low_stock_products": self.catalog.low_stock_count(),
            },
            "recent_invoices": [invoice.to_dict(include_lines=False) for invoice in recent],
        }

    def sales_data(self, days: int = 30, now: datetime | None = None) -> list[dict]:
        """Per-day paid revenue and order count for the last ``days`` days, oldest first."""
        now = now or utcnow()
        days = max(1, min(days, MAX_SALES_DAYS))
        start = now - timedelta(days=days)

        day_expr = func.date(Invoice.created_at)
        rows = (
            self.session.query(
                day_expr.label("day"),
                func.coalesce(func.sum(Invoice.total_inr), 0).label("revenue_inr"),
                func.count(Invoice.id).label("orders"),
            )
            .filter(Invoice.status == REVENUE_STATUS, Invoice.created_at >= start)
            .group_by(day_expr)
            .order_by(day_expr)
            .all()
        )
        return [
            {
                "date": str(row.day),
                "revenue_inr": int(row.revenue_inr or 0),
                "orders": int(row.orders or 0),
            }
            for row in rows
        ]

    def top_products(self, limit: int = 10) -> list[dict]:
        """
        Best sellers by revenue from line snapshots.

        Lines of deleted products have no product_id; they are grouped by
        their snapshot name and report a current stock of 0.
        """
        orphan_key = case((InvoiceLine.product_id.is_(None), InvoiceLine.product_name), else_="")
        revenue = func.sum(InvoiceLine.line_total_inr)

        rows = (
            self.session.query(
                InvoiceLine.product_id.label("product_id"),
                func.max(InvoiceLine.product_name).label("product_name"),
                func.sum(InvoiceLine.quantity).label("total_quantity"),
                revenue.label("total_revenue_inr"),
            )
            .join(Invoice, Invoice.id == InvoiceLine.invoice_id)
            .filter(Invoice.status == REVENUE_STATUS)
            .group_by(InvoiceLine.product_id, orphan_key)
            .order_by(revenue.desc(), func.max(InvoiceLine.product_name).asc())
            .limit(limit)
            .all()
        )

        product_ids = [row.product_id for row in rows if row.product_id is not None]
        stock_by_id = {}
        if product_ids:
            stock_by_id = dict(
                self.session.query(Product.id, Product.stock).filter(Product.id.in_(product_ids)).all()
            )

        return [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "total_quantity": int(row.total_quantity or 0),
                "total_revenue_inr": int(row.total_revenue_inr or 0),
                "current_stock": int(stock_by_id.get(row.product_id, 0)),
            }
            for row in rows
        ]

    def category_revenue(self) -> list[dict]:
        """Paid revenue per current product category; lines of deleted products drop out."""
        revenue = func.sum(InvoiceLine.line_total_inr)
        rows = (
            self.session.query(Product.category.label("name"), revenue.label("value"))
            .join(InvoiceLine, InvoiceLine.product_id == Product.id)
            .join(Invoice, Invoice.id == InvoiceLine.invoice_id)
            .filter(Invoice.status == REVENUE_STATUS)
            .group_by(Product.category)
            .order_by(revenue.desc(), Product.category.asc())
            .all()
        )
        return [{"name": row.name, "value": int(row.value or 0)} for row in rows]
