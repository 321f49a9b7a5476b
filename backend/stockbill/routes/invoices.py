# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

# backend/stockbill/routes/invoices.py
"""Invoice API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..schemas import CreateInvoicePayload, InvoiceStatusPayload
from ..services.providers import invoice_compiler
from ..validation import ValidationError, ConflictError, NotFoundError, InsufficientStockError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    Invoice history.

    Query params: status, search, start, end, page, per_page
    """
    try:
        result = invoice_compiler().list_invoices(
            status=request.args.get("status"),
            search=request.args.get("search"),
            start=request.args.get("start"),
            end=request.args.get("end"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list invoices")
        return jsonify({"error": "Internal server error"}), 500

    result["items"] = [invoice.to_dict(include_lines=False) for invoice in result["items"]]
    return jsonify(result)


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_compiler().get(invoice_id)
    except NotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to load invoice")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(invoice.to_dict())


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create an invoice and decrement stock for every line.

    Fails as a whole (no invoice, no stock change) when any product is
    missing or short.
    """
    try:
        payload = CreateInvoicePayload.from_json(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        invoice = invoice_compiler().create_invoice(payload, created_by_user_id=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(invoice.to_dict()), 201


@invoices_bp.patch("/<int:invoice_id>/status")
@require_auth
def update_invoice_status_route(invoice_id: int):
    try:
        payload = InvoiceStatusPayload.from_json(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        invoice = invoice_compiler().update_status(invoice_id, payload.status)
    except NotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to update invoice status")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(invoice.to_dict()), 200
