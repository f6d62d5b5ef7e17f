"""
Unit tests for line item normalization and the order line model
"""

import math

from OrderBridge.models.order_models import LineItem, Order, PricingState
from OrderBridge.suppliers.data_extraction import DataExtractor
from OrderBridge.suppliers.normalization import (
    normalize_line_item,
    normalize_line_items,
    normalize_quantity,
    normalize_sku,
    normalize_uom,
)


class TestNormalization:
    """SKU, quantity and unit coercion shared by all adapters"""

    def test_sku_is_trimmed_and_uppercased(self):
        assert normalize_sku(" abc-1 ") == "ABC-1"
        assert normalize_sku(None) == ""

    def test_quantity_defaults_to_one(self):
        assert normalize_quantity(None) == 1
        assert normalize_quantity("abc") == 1
        assert normalize_quantity(0) == 1
        assert normalize_quantity(-4) == 1
        assert normalize_quantity(math.nan) == 1

    def test_quantity_keeps_positive_numbers(self):
        assert normalize_quantity("10") == 10
        assert normalize_quantity(2.5) == 2.5

    def test_uom_is_uppercased_with_default(self):
        assert normalize_uom(" sq ") == "SQ"
        assert normalize_uom("") == "EA"
        assert normalize_uom(None) == "EA"

    def test_line_item_field_spellings(self):
        line = normalize_line_item({"id": 3, "itemCode": " 26vpj ", "qty": "4", "unitOfMeasure": "bx"})

        assert line.line_id == "3"
        assert line.sku == "26vpj"
        assert line.quantity == 4
        assert line.uom == "BX"

    def test_blank_skus_are_dropped(self):
        lines = normalize_line_items([{"sku": "  "}, {"sku": "A1"}, "not a dict"])
        assert [line.sku for line in lines] == ["A1"]


class TestDataExtractor:
    """Defensive extraction helpers"""

    def setup_method(self):
        self.extractor = DataExtractor("TEST")

    def test_first_array_probes_paths_in_order(self):
        data = {"data": {"lines": [{"sku": "A"}]}, "lines": "not a list"}
        path, items = self.extractor.first_array(data, ["lines", "data.lines"])
        assert path == "data.lines"
        assert items == [{"sku": "A"}]

    def test_unit_price_takes_first_positive_value(self):
        record = {"unitPrice": 0, "price": "$1,234.50"}
        assert self.extractor.extract_unit_price(record) == 1234.5

    def test_unit_price_none_when_nothing_usable(self):
        assert self.extractor.extract_unit_price({"unitPrice": "call"}) is None


class TestLineItem:
    """Price bookkeeping on the order line model"""

    def test_from_payload_accepts_ui_spellings(self):
        item = LineItem.from_payload({"itemNumber": "X1", "quantity": 3, "unitOfMeasure": "rl"})
        assert item.sku == "X1"
        assert item.quantity == 3
        assert item.unit_of_measure == "RL"
        assert item.pricing_state == PricingState.UNPRICED

    def test_mark_priced_keeps_line_price_exact(self):
        item = LineItem(sku="A", qty=3, uom="EA")
        item.mark_priced(0.1)
        assert item.line_price == 3 * 0.1
        assert item.is_priced

    def test_mark_error_clears_prices(self):
        item = LineItem(sku="A", qty=1)
        item.mark_priced(5)
        item.mark_error("Price unavailable")

        assert item.unit_price is None
        assert item.line_price is None
        assert item.pricing_state == PricingState.ERROR
        assert item.pricing_error == "Price unavailable"

    def test_payload_round_trip_uses_aliases(self):
        payload = LineItem(sku="A", qty=2, uom="SQ").to_payload()
        assert payload["qty"] == 2
        assert payload["uom"] == "SQ"
        assert payload["pricingState"] == "Unpriced"

    def test_order_total(self):
        order = Order(supplier="ABC", fullOrderItems=[
            {"sku": "A", "qty": 2, "unitPrice": 1.25},
            {"sku": "B", "qty": 1},
        ])
        assert order.total == 2.5
