# Overview: Flask API routes for analytics; parses input and returns JSON responses.

"""
Analytics Routes

Dashboard totals, daily sales series, top products and category revenue.
All figures are computed from paid invoices at request time.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services.providers import analytics


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/dashboard")
@require_auth
def dashboard_route():
    try:
        return jsonify(analytics().dashboard())
    except Exception:
        return _internal_error("build dashboard")


@analytics_bp.get("/sales-data")
@require_auth
def sales_data_route():
    days = request.args.get("days", 30, type=int)
    if days < 1:
        return jsonify({"error": "days must be >= 1"}), 400
    try:
        rows = analytics().sales_data(days=days)
    except Exception:
        return _internal_error("load sales data")
    return jsonify({"days": days, "rows": rows})


@analytics_bp.get("/top-products")
@require_auth
def top_products_route():
    limit = request.args.get("limit", 10, type=int)
    if limit < 1 or limit > 100:
        return jsonify({"error": "limit must be between 1 and 100"}), 400
    try:
        rows = analytics().top_products(limit=limit)
    except Exception:
        return _internal_error("load top products")
    return jsonify({"rows": rows})


@analytics_bp.get("/category-revenue")
@require_auth
def category_revenue_route():
    try:
        rows = analytics().category_revenue()
    except Exception:
        return _internal_error("load category revenue")
    return jsonify({"rows": rows})
