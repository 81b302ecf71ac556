"""
Tests for the pricing normalizer: GST math, quantity coercion and catalog
resolution.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from rest_api.services.domain.pricing_service import (
    CatalogEntry,
    PricingService,
    coerce_quantity,
    money_str,
    price_items,
    price_line,
)
from shared.utils.exceptions import EmptyOrderError, InvalidPriceError, ItemNotFoundError
from shared.utils.schemas import RawOrderItem


def raw(item_id=1, **fields) -> RawOrderItem:
    return RawOrderItem.model_validate({"itemId": item_id, **fields})


def entry(price="100", rate="0", mode="exclude", item_id=1, name="Paneer Tikka") -> CatalogEntry:
    return CatalogEntry(
        item_id=item_id,
        name=name,
        price=Decimal(price),
        gst_rate=Decimal(rate),
        gst_mode=mode,
    )


class TestPriceLine:
    def test_exclusive_gst_added_on_top(self):
        line = price_line(Decimal("100"), 2, Decimal("10"), "exclude")
        assert line.subtotal == Decimal("200.00")
        assert line.gst_amount == Decimal("20.00")
        assert line.line_total == Decimal("220.00")

    def test_inclusive_gst_backed_out(self):
        line = price_line(Decimal("110"), 2, Decimal("10"), "include")
        assert line.gst_amount == Decimal("20.00")
        assert line.subtotal == Decimal("200.00")
        assert line.line_total == Decimal("220.00")

    def test_zero_rate_has_no_tax(self):
        line = price_line(Decimal("99.99"), 3, Decimal("0"), "include")
        assert line.gst_amount == Decimal("0.00")
        assert line.subtotal == line.line_total == Decimal("299.97")

    def test_rounds_half_up_to_cents(self):
        # 10.05 * 5% = 0.5025 -> 0.50
        line = price_line(Decimal("10.05"), 1, Decimal("5"), "exclude")
        assert line.gst_amount == Decimal("0.50")
        assert line.line_total == Decimal("10.55")


class TestCoerceQuantity:
    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        ("4", 4),
        (2.7, 2),
        (0, 1),
        (-5, 1),
        ("abc", 1),
        (None, 1),
        (True, 1),
        (float("nan"), 1),
        (float("inf"), 1),
    ])
    def test_coercion(self, value, expected):
        assert coerce_quantity(value) == expected


class TestPriceItems:
    def test_priced_line_shape(self):
        priced = price_items([raw(quantity=2)], {1: entry(price="100", rate="10")})
        assert priced.items == [{
            "itemId": 1,
            "name": "Paneer Tikka",
            "quantity": 2,
            "unitPrice": "100.00",
            "addons": [],
            "gstRate": "10.00",
            "gstMode": "exclude",
            "subtotal": "200.00",
            "gstAmount": "20.00",
            "lineTotal": "220.00",
        }]
        assert priced.total_amount_str == "220.00"

    def test_request_price_overrides_catalog(self):
        priced = price_items([raw(unitPrice="150", quantity=1)], {1: entry(price="100")})
        assert priced.items[0]["unitPrice"] == "150.00"
        assert priced.total_amount == Decimal("150.00")

    def test_per_line_gst_overrides_catalog_default(self):
        priced = price_items(
            [raw(quantity=2, unitPrice="110", gstRate=10, gstMode="include")],
            {1: entry(rate="5", mode="exclude")},
        )
        line = priced.items[0]
        assert line["gstMode"] == "include"
        assert line["gstAmount"] == "20.00"
        assert line["subtotal"] == "200.00"
        assert priced.total_amount_str == "220.00"

    def test_unknown_gst_mode_falls_back_to_catalog(self):
        priced = price_items([raw(gstMode="sometimes")], {1: entry(mode="include")})
        assert priced.items[0]["gstMode"] == "include"

    def test_addons_are_kept(self):
        addons = [{"name": "Extra cheese", "price": 20}]
        priced = price_items([raw(addons=addons)], {1: entry()})
        assert priced.items[0]["addons"] == addons

    def test_empty_order_rejected(self):
        with pytest.raises(EmptyOrderError):
            price_items([], {1: entry()})

    def test_unknown_item_rejected(self):
        with pytest.raises(ItemNotFoundError):
            price_items([raw(item_id=99)], {1: entry()})

    @pytest.mark.parametrize("bad_price", ["-1", "NaN", "Infinity", "twelve"])
    def test_invalid_price_rejected(self, bad_price):
        with pytest.raises(InvalidPriceError):
            price_items([raw(unitPrice=bad_price)], {1: entry()})

    def test_repricing_is_stable(self):
        catalog = {1: entry(price="33.33", rate="18", mode="include")}
        first = price_items([raw(quantity=3)], catalog)
        second = price_items([raw(**first.items[0])], catalog)
        assert second.items == first.items
        assert second.total_amount == first.total_amount


class TestPricingProperties:
    """Property-based checks on the line math."""

    @given(
        price_cents=st.integers(min_value=0, max_value=1_000_000),
        quantity=st.integers(min_value=1, max_value=50),
        rate=st.sampled_from(["0", "5", "12", "18", "28"]),
    )
    @settings(max_examples=100)
    def test_exclusive_total_is_subtotal_plus_tax(self, price_cents, quantity, rate):
        price = Decimal(price_cents) / 100
        line = price_line(price, quantity, Decimal(rate), "exclude")
        assert line.line_total == line.subtotal + line.gst_amount
        assert line.subtotal == (price * quantity).quantize(Decimal("0.01"))

    @given(
        price_cents=st.integers(min_value=0, max_value=1_000_000),
        quantity=st.integers(min_value=1, max_value=50),
        rate=st.sampled_from(["0", "5", "12", "18", "28"]),
    )
    @settings(max_examples=100)
    def test_inclusive_total_equals_gross(self, price_cents, quantity, rate):
        price = Decimal(price_cents) / 100
        line = price_line(price, quantity, Decimal(rate), "include")
        gross = (price * quantity).quantize(Decimal("0.01"))
        assert line.line_total == gross
        assert line.subtotal + line.gst_amount == gross
        assert line.gst_amount >= 0

    @given(quantities=st.lists(st.integers(min_value=1, max_value=20), min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_total_is_sum_of_line_totals(self, quantities):
        catalog = {1: entry(price="12.35", rate="5")}
        priced = price_items([raw(quantity=q) for q in quantities], catalog)
        assert priced.total_amount == sum(Decimal(i["lineTotal"]) for i in priced.items)
        assert money_str(priced.total_amount) == priced.total_amount_str


class TestPricingService:
    def test_uses_category_gst(self, db_session, seed_menu):
        priced = PricingService(db_session).normalize(7, [raw(quantity=2)])
        assert priced.items[0]["gstRate"] == "5.00"
        assert priced.total_amount_str == "420.00"

    def test_other_vendors_items_not_found(self, db_session, seed_menu):
        with pytest.raises(ItemNotFoundError):
            PricingService(db_session).normalize(8, [raw(quantity=1)])

    def test_unavailable_item_not_found(self, db_session, seed_menu):
        seed_menu.is_available = False
        db_session.commit()
        with pytest.raises(ItemNotFoundError):
            PricingService(db_session).normalize(7, [raw()])
