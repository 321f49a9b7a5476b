"""
Catalog ledger tests.

Verifies:
- SKU generation and duplicate SKU conflicts
- Stock adjustments clamp at zero
- Filtered, paginated listing
- Low-stock evaluation against each product's own threshold
- Hard delete keeps invoice line snapshots
"""

import re

import pytest

from stockbill.models import InvoiceLine, Product
from stockbill.schemas import CreateInvoicePayload
from stockbill.services.catalog_service import CatalogLedger, escape_like, generate_sku
from stockbill.validation import ConflictError, NotFoundError, ValidationError


SKU_PATTERN = re.compile(r"^SKU-\d+-[0-9A-Z]{9}$")


# =============================================================================
# CREATE / UPDATE
# =============================================================================


class TestCreateProduct:

    def test_generates_sku_when_missing(self, catalog, admin_user):
        product = catalog.create(
            {"name": "Notebook", "category": "Stationery", "price_inr": 40},
            created_by_user_id=admin_user.id,
        )
        assert SKU_PATTERN.match(product.sku)
        assert product.created_by_user_id == admin_user.id

    def test_defaults_stock_and_threshold(self, db_session, admin_user):
        ledger = CatalogLedger(db_session, low_stock_default=7)
        product = ledger.create({"name": "Pen", "category": "Stationery", "price_inr": 10})
        assert product.stock == 0
        assert product.low_stock_threshold == 7

    def test_keeps_supplied_sku(self, widget):
        assert widget.sku == "WID-001"

    def test_duplicate_sku_conflicts(self, catalog, widget):
        with pytest.raises(ConflictError):
            catalog.create({"name": "Other", "category": "Hardware", "price_inr": 5, "sku": "WID-001"})
        assert catalog.session.query(Product).count() == 1

    def test_generate_sku_uses_timestamp(self):
        sku = generate_sku(now_ms=1700000000000)
        assert sku.startswith("SKU-1700000000000-")
        assert SKU_PATTERN.match(sku)


class TestUpdateProduct:

    def test_partial_update(self, catalog, widget):
        updated = catalog.update(widget.id, {"price_inr": 120, "description": "Steel widget"})
        assert updated.price_inr == 120
        assert updated.description == "Steel widget"
        assert updated.name == "Widget"

    def test_sku_taken_by_other_product(self, catalog, widget, gadget):
        with pytest.raises(ConflictError):
            catalog.update(gadget.id, {"sku": "WID-001"})

    def test_same_sku_is_not_a_conflict(self, catalog, widget):
        updated = catalog.update(widget.id, {"sku": "WID-001", "name": "Widget v2"})
        assert updated.name == "Widget v2"

    def test_cannot_clear_sku(self, catalog, widget):
        with pytest.raises(ValidationError):
            catalog.update(widget.id, {"sku": None})

    def test_missing_product(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update(999999, {"name": "Ghost"})


# =============================================================================
# STOCK
# =============================================================================


class TestAdjustStock:

    def test_adds_stock(self, catalog, widget):
        assert catalog.adjust_stock(widget.id, 5).stock == 15

    def test_subtracts_stock(self, catalog, widget):
        assert catalog.adjust_stock(widget.id, -4).stock == 6

    def test_clamps_at_zero(self, catalog, admin_user):
        product = catalog.create({"name": "Bolt", "category": "Hardware", "price_inr": 2, "stock": 5})
        adjusted = catalog.adjust_stock(product.id, -1000000)
        assert adjusted.stock == 0

    def test_missing_product(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.adjust_stock(999999, 1)

    def test_reserve_refuses_to_go_negative(self, catalog, gadget):
        assert catalog.reserve(gadget.id, 3) is False
        catalog.session.rollback()
        assert catalog.get(gadget.id).stock == 2

    def test_reserve_decrements(self, catalog, gadget):
        assert catalog.reserve(gadget.id, 2) is True
        catalog.session.commit()
        assert catalog.get(gadget.id).stock == 0

    def test_reserve_missing_product(self, catalog):
        assert catalog.reserve(999999, 1) is False


class TestLowStock:

    def test_uses_each_products_threshold(self, catalog, widget, gadget):
        low = catalog.low_stock()
        assert [p.id for p in low] == [gadget.id]
        assert catalog.low_stock_count() == 1

    def test_threshold_is_inclusive(self, catalog, widget, gadget):
        catalog.adjust_stock(widget.id, -7)
        low_ids = {p.id for p in catalog.low_stock()}
        assert low_ids == {widget.id, gadget.id}

    def test_flag_in_serialized_product(self, gadget, widget):
        assert gadget.to_dict()["is_low_stock"] is True
        assert widget.to_dict()["is_low_stock"] is False


# =============================================================================
# QUERY
# =============================================================================


class TestQuery:

    def test_search_matches_name_case_insensitively(self, catalog, widget, gadget):
        result = catalog.query(search="widg")
        assert [p.id for p in result["items"]] == [widget.id]

    def test_search_matches_sku(self, catalog, widget, gadget):
        result = catalog.query(search="gad-0")
        assert [p.id for p in result["items"]] == [gadget.id]

    def test_search_treats_wildcards_literally(self, catalog, widget, gadget):
        assert catalog.query(search="%")["total"] == 0

    def test_category_filter(self, catalog, widget, gadget):
        result = catalog.query(category="Electronics")
        assert [p.id for p in result["items"]] == [gadget.id]

    def test_category_all_disables_filter(self, catalog, widget, gadget):
        assert catalog.query(category="all")["total"] == 2

    def test_newest_first(self, catalog, widget, gadget):
        result = catalog.query()
        assert [p.id for p in result["items"]] == [gadget.id, widget.id]

    def test_pagination(self, catalog, widget, gadget):
        first = catalog.query(page=1, per_page=1)
        assert first["total"] == 2
        assert first["total_pages"] == 2
        assert first["has_next"] is True
        assert first["has_prev"] is False

        second = catalog.query(page=2, per_page=1)
        assert [p.id for p in second["items"]] == [widget.id]
        assert second["has_next"] is False

    def test_per_page_is_capped(self, db_session, widget):
        ledger = CatalogLedger(db_session, max_per_page=5)
        assert ledger.query(per_page=500)["per_page"] == 5

    def test_categories_are_distinct_and_sorted(self, catalog, widget, gadget):
        assert catalog.categories() == ["Electronics", "Hardware"]

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


# =============================================================================
# DELETE
# =============================================================================


class TestDeleteProduct:

    def test_delete_keeps_line_snapshot(self, db_session, catalog, compiler, widget, admin_user):
        payload = CreateInvoicePayload.from_json({
            "customer_name": "Asha",
            "items": [{"product_id": widget.id, "quantity": 1}],
        })
        invoice = compiler.create_invoice(payload, created_by_user_id=admin_user.id)
        product_id = widget.id

        catalog.delete(product_id)

        assert db_session.get(Product, product_id) is None
        line = db_session.query(InvoiceLine).filter_by(invoice_id=invoice.id).one()
        assert line.product_id is None
        assert line.product_name == "Widget"
        assert line.product_sku == "WID-001"
        assert line.unit_price_inr == 100

    def test_delete_missing(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.delete(999999)
