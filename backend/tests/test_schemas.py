"""Request schema validation tests."""

import pytest

from stockbill.schemas import (
    CreateInvoicePayload,
    InvoiceStatusPayload,
    LoginPayload,
    ProductPayload,
    StockAdjustmentPayload,
)
from stockbill.validation import ValidationError, coerce_int


class TestCoerceInt:

    @pytest.mark.parametrize("value,expected", [(5, 5), ("12", 12), (" -3 ", -3)])
    def test_accepts_integers(self, value, expected):
        assert coerce_int("quantity", value) == expected

    @pytest.mark.parametrize("value", [True, 2.5, "2.5", "1e3", "", "abc", None, [1]])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationError):
            coerce_int("quantity", value)


class TestProductPayload:

    def test_create_requires_core_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            ProductPayload.from_json({"name": "Widget"}, partial=False)
        assert "category" in str(exc_info.value)
        assert "price_inr" in str(exc_info.value)

    def test_trims_and_keeps_only_sent_fields(self):
        payload = ProductPayload.from_json(
            {"name": "  Widget ", "category": "Hardware", "price_inr": "100"},
            partial=False,
        )
        assert payload.fields == {"name": "Widget", "category": "Hardware", "price_inr": 100}

    def test_partial_update(self):
        payload = ProductPayload.from_json({"stock": 4}, partial=True)
        assert payload.fields == {"stock": 4}

    @pytest.mark.parametrize("body", [
        {"price_inr": -1},
        {"stock": -5},
        {"price_inr": 10.5},
        {"name": ""},
        {"name": None},
        {"low_stock_threshold": "many"},
        {"owner": "someone"},
    ])
    def test_rejects_bad_fields(self, body):
        with pytest.raises(ValidationError):
            ProductPayload.from_json(body, partial=True)

    def test_blank_sku_means_generate(self):
        payload = ProductPayload.from_json({"sku": "  "}, partial=True)
        assert payload.fields == {"sku": None}

    def test_non_object_body(self):
        with pytest.raises(ValidationError):
            ProductPayload.from_json(["name"], partial=True)


class TestStockAdjustmentPayload:

    def test_signed_quantity(self):
        assert StockAdjustmentPayload.from_json({"quantity": -7}).quantity == -7

    def test_quantity_required(self):
        with pytest.raises(ValidationError):
            StockAdjustmentPayload.from_json({})


class TestCreateInvoicePayload:

    def test_defaults(self):
        payload = CreateInvoicePayload.from_json({
            "customer_name": "Asha",
            "items": [{"product_id": 1, "quantity": 2}],
        })
        assert payload.status == "paid"
        assert payload.discount_inr == 0
        assert payload.customer_email is None
        assert payload.items[0].product_id == 1
        assert payload.items[0].quantity == 2

    def test_email_is_normalized(self):
        payload = CreateInvoicePayload.from_json({
            "customer_name": "Asha",
            "customer_email": " Asha@Example.COM ",
            "items": [{"product_id": 1, "quantity": 1}],
        })
        assert payload.customer_email == "asha@example.com"

    @pytest.mark.parametrize("body", [
        {"items": [{"product_id": 1, "quantity": 1}]},
        {"customer_name": "  ", "items": [{"product_id": 1, "quantity": 1}]},
        {"customer_name": "Asha", "items": []},
        {"customer_name": "Asha", "items": "1x widget"},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 0}]},
        {"customer_name": "Asha", "items": [{"product_id": 1}]},
        {"customer_name": "Asha", "items": [{"product_id": "one", "quantity": 1}]},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 1, "price_inr": 1}]},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 1}], "discount_inr": -5},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 1}], "customer_email": "nope"},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 1}], "status": "cancelled"},
        {"customer_name": "Asha", "items": [{"product_id": 1, "quantity": 1}], "total_inr": 1},
    ])
    def test_rejects_invalid_requests(self, body):
        with pytest.raises(ValidationError):
            CreateInvoicePayload.from_json(body)

    def test_too_many_items(self):
        items = [{"product_id": 1, "quantity": 1}] * 201
        with pytest.raises(ValidationError):
            CreateInvoicePayload.from_json({"customer_name": "Asha", "items": items})


class TestInvoiceStatusPayload:

    @pytest.mark.parametrize("status", ["pending", "paid", "cancelled"])
    def test_known_statuses(self, status):
        assert InvoiceStatusPayload.from_json({"status": status}).status == status

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            InvoiceStatusPayload.from_json({"status": "refunded"})


class TestLoginPayload:

    def test_email_is_normalized(self):
        payload = LoginPayload.from_json({"email": " Staff@Example.com ", "password": "pw"})
        assert payload.email == "staff@example.com"
        assert payload.password == "pw"

    @pytest.mark.parametrize("body", [
        None,
        ["staff@example.com", "pw"],
        {"email": "staff@example.com"},
        {"email": "  ", "password": "pw"},
        {"email": 7, "password": "pw"},
        {"email": "staff@example.com", "password": ["pw"]},
    ])
    def test_rejects_invalid_bodies(self, body):
        with pytest.raises(ValidationError):
            LoginPayload.from_json(body)
