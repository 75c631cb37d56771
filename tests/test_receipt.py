"""Tests for the receipt data model and money formatting."""

from decimal import Decimal

import pytest

from till.printing.receipt import (
    DEFAULT_CUSTOMER,
    DEFAULT_DESCRIPTION,
    LineItem,
    ReceiptRequest,
    format_money,
    to_decimal,
)


class TestFormatMoney:
    """Currency always renders with two decimals, half away from zero."""

    @pytest.mark.parametrize("value, expected", [
        (12, "12.00"),
        (0, "0.00"),
        (None, "0.00"),
        ("7.5", "7.50"),
        (Decimal("3"), "3.00"),
    ])
    def test_two_decimals(self, value, expected):
        assert format_money(value) == expected

    def test_half_cent_boundary_rounds_up(self):
        assert format_money(12.345) == "12.35"
        assert format_money(0.005) == "0.01"

    def test_below_half_cent_rounds_down(self):
        assert format_money(12.344) == "12.34"
        assert format_money(0.0049) == "0.00"

    def test_float_representation_does_not_leak(self):
        # 2.675 is 2.67499999... in binary
        assert format_money(2.675) == "2.68"

    def test_negative_rounds_away_from_zero(self):
        assert format_money(-0.005) == "-0.01"
        assert format_money(-1.5) == "-1.50"

    def test_negative_zero_is_plain_zero(self):
        assert format_money(-0.001) == "0.00"

    def test_currency_symbol(self):
        assert format_money(3, "P") == "P3.00"
        assert format_money(-3, "P") == "-P3.00"

    def test_garbage_is_zero(self):
        assert format_money("abc") == "0.00"
        assert format_money(float("nan")) == "0.00"
        assert to_decimal(True) == Decimal("0")


class TestLineItem:
    """Tests for LineItem.from_dict."""

    def test_register_keys(self):
        item = LineItem.from_dict({"desc": "Coffee", "qty": 2, "price": 3, "amount": 6})

        assert item.description == "Coffee"
        assert item.quantity == 2
        assert item.unit_price == Decimal("3")
        assert item.amount == Decimal("6")

    def test_missing_price_derived_from_amount(self):
        item = LineItem.from_dict({"desc": "Rice", "qty": 4, "amount": 10})
        assert item.unit_price == Decimal("2.5")

    def test_missing_price_with_zero_qty(self):
        item = LineItem.from_dict({"desc": "Rice", "qty": 0, "amount": 10})
        assert item.unit_price == Decimal("0")

    def test_amount_is_not_recomputed(self):
        item = LineItem.from_dict({"desc": "Promo", "qty": 3, "price": 5, "amount": 10})
        assert item.amount == Decimal("10")

    def test_empty_description_gets_placeholder(self):
        assert LineItem.from_dict({"desc": "   "}).description == DEFAULT_DESCRIPTION
        assert LineItem.from_dict("not a dict").description == DEFAULT_DESCRIPTION

    def test_negative_or_bad_quantity_is_zero(self):
        assert LineItem.from_dict({"qty": -3}).quantity == 0
        assert LineItem.from_dict({"qty": "many"}).quantity == 0


class TestReceiptRequest:
    """Tests for ReceiptRequest.from_dict."""

    def test_shell_payload(self):
        request = ReceiptRequest.from_dict({
            "customer": {"name": "Maria"},
            "store": {"name": "Corner Shop", "address1": "1 Main St", "address2": ""},
            "items": [{"desc": "Bread", "qty": 1, "price": 40, "amount": 40}],
            "cartTotal": 40,
            "amount": 50,
            "change": 10,
            "points": 4,
            "printerName": "POS-80",
        })

        assert request.customer_name == "Maria"
        assert request.store_name == "Corner Shop"
        assert request.store_address == ("1 Main St",)
        assert request.item_count == 1
        assert request.total == Decimal("40")
        assert request.amount_tendered == Decimal("50")
        assert request.change_due == Decimal("10")
        assert request.points == 4
        assert request.printer_name == "POS-80"

    def test_missing_fields_degrade(self):
        request = ReceiptRequest.from_dict({})

        assert request.items == ()
        assert request.customer_name == DEFAULT_CUSTOMER
        assert request.store_name is None
        assert request.total == Decimal("0")
        assert request.points == 0
        assert request.printer_name is None

    def test_non_mapping_payload(self):
        assert ReceiptRequest.from_dict(None) == ReceiptRequest()

    def test_blank_printer_name_is_none(self):
        assert ReceiptRequest.from_dict({"printerName": "  "}).printer_name is None

    def test_request_is_immutable(self):
        request = ReceiptRequest()
        with pytest.raises(Exception):
            request.points = 5
