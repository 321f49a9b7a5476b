# Overview: Flask API routes for product operations; parses input and returns JSON responses.

# backend/stockbill/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Deleting a product requires the admin role
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..schemas import ProductPayload, StockAdjustmentPayload
from ..services.providers import catalog_ledger
from ..validation import ValidationError, ConflictError, NotFoundError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - search: str (optional) - case-insensitive match on name or SKU
    - category: str (optional) - exact category, "all" for no filter
    - page: int (optional) - page number (1-indexed)
    - per_page: int (optional) - items per page (default 50, max 100)
    """
    try:
        result = catalog_ledger().query(
            search=request.args.get("search"),
            category=request.args.get("category"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        result["items"] = [p.to_dict() for p in result["items"]]
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)


@products_bp.get("/low-stock")
@require_auth
def low_stock_route():
    """Products at or below their low-stock threshold."""
    try:
        products = catalog_ledger().low_stock()
    except Exception:
        current_app.logger.exception("Failed to list low-stock products")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@products_bp.get("/categories")
@require_auth
def categories_route():
    try:
        categories = catalog_ledger().categories()
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"categories": categories})


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = catalog_ledger().get(product_id)
    except NotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(product.to_dict())


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product.

    A SKU is generated when none is supplied.
    """
    try:
        payload = ProductPayload.from_json(request.get_json(silent=True), partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = catalog_ledger().create(payload.fields, created_by_user_id=g.current_user.id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(created.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    try:
        payload = ProductPayload.from_json(request.get_json(silent=True), partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = catalog_ledger().update(product_id, payload.fields)
    except NotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(updated.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    """
    Delete a product. Past invoices keep their line snapshots.

    Requires the admin role.
    """
    try:
        catalog_ledger().delete(product_id)
    except NotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200


@products_bp.patch("/<int:product_id>/stock")
@require_auth
def adjust_stock_route(product_id: int):
    """
    Adjust stock by a signed quantity; the result is clamped at zero.

    Body: {"quantity": int}
    """
    try:
        payload = StockAdjustmentPayload.from_json(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_ledger().adjust_stock(product_id, payload.quantity)
    except NotFoundError:
        return jsonify({"error": "Product not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product.to_dict()), 200
