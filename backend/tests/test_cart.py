# Overview: Pytest coverage for cart quantity clamping and totals.

"""
Cart Aggregator Tests

Quantities are clamped against each product's stock level on every change:
limited stock caps at the limit, unavailable products stay at zero and
unlimited products only floor at zero.
"""

import math

import pytest

from storefront.cart import Cart, CartLine, CatalogItem
from storefront.services import order_service
from storefront.stock import Availability, StockLevel, UNLIMITED_STOCK


LIMITED = CatalogItem(1, "Tire", 1000, StockLevel.from_raw(3))
SOLD_OUT = CatalogItem(2, "Rim", 2500, StockLevel.from_raw(0))
UNLIMITED = CatalogItem(3, "Alignment", 8000, StockLevel.from_raw(UNLIMITED_STOCK))
CATALOG = {item.product_id: item for item in (LIMITED, SOLD_OUT, UNLIMITED)}


class TestStockLevel:
    """Sentinel decoding."""

    @pytest.mark.parametrize(
        "raw,availability,limit",
        [
            (5, Availability.LIMITED, 5),
            (0, Availability.UNAVAILABLE, None),
            (-1, Availability.UNLIMITED, None),
            (None, Availability.UNLIMITED, None),
        ],
    )
    def test_from_raw(self, raw, availability, limit):
        level = StockLevel.from_raw(raw)
        assert level.availability is availability
        assert level.limit == limit

    def test_allows(self):
        assert StockLevel.from_raw(3).allows(3)
        assert not StockLevel.from_raw(3).allows(4)
        assert not StockLevel.from_raw(0).allows(1)
        assert StockLevel.from_raw(-1).allows(10_000)

    def test_after_decrement_floors_at_zero(self):
        assert StockLevel.from_raw(3).after_decrement(3, 2) == 1
        assert StockLevel.from_raw(1).after_decrement(1, 2) == 0
        assert StockLevel.from_raw(-1).after_decrement(-1, 50) == -1


class TestCartAdjustments:
    """increment / decrement / set_exact clamping."""

    def test_increment_caps_at_limit(self):
        cart = Cart()
        for _ in range(5):
            cart.increment(LIMITED)
        assert cart.quantity(LIMITED.product_id) == 3

    def test_increment_unavailable_is_noop(self):
        cart = Cart()
        assert cart.increment(SOLD_OUT) == 0
        assert SOLD_OUT.product_id not in cart

    def test_increment_unlimited(self):
        cart = Cart()
        cart.increment(UNLIMITED, step=250)
        assert cart.quantity(UNLIMITED.product_id) == 250

    def test_decrement_floors_and_removes(self):
        cart = Cart()
        cart.increment(LIMITED)
        cart.decrement(LIMITED)
        cart.decrement(LIMITED)

        assert cart.quantity(LIMITED.product_id) == 0
        assert LIMITED.product_id not in cart

    @pytest.mark.parametrize(
        "typed,expected",
        [
            (2, 2),
            ("2", 2),
            (2.9, 2),
            (10, 3),
            (-4, 0),
            ("abc", 0),
            (None, 0),
            (math.nan, 0),
            (math.inf, 0),
        ],
    )
    def test_set_exact_limited(self, typed, expected):
        cart = Cart()
        assert cart.set_exact(LIMITED, typed) == expected
        assert cart.quantity(LIMITED.product_id) == expected

    def test_set_exact_unavailable_is_zero(self):
        cart = Cart()
        assert cart.set_exact(SOLD_OUT, 4) == 0

    def test_set_exact_unlimited_keeps_large_values(self):
        cart = Cart()
        assert cart.set_exact(UNLIMITED, 1_000_000) == 1_000_000

    def test_initial_quantities_skip_zero(self):
        cart = Cart({1: 2, 3: 0})
        assert len(cart) == 1

    def test_remove_and_clear(self):
        cart = Cart()
        cart.increment(LIMITED)
        cart.increment(UNLIMITED)

        cart.remove(LIMITED.product_id)
        assert len(cart) == 1
        cart.clear()
        assert len(cart) == 0


class TestCartTotals:
    """Lines and totals computed from catalog prices."""

    def test_lines_and_total(self):
        cart = Cart()
        cart.set_exact(LIMITED, 2)
        cart.set_exact(UNLIMITED, 1)

        lines = list(cart.lines(CATALOG))

        assert lines == [CartLine(LIMITED, 2), CartLine(UNLIMITED, 1)]
        assert lines[0].subtotal_cents == 2000
        assert cart.total_cents(CATALOG) == 10000

    def test_products_missing_from_catalog_skipped(self):
        cart = Cart({99: 1, 1: 1})
        assert cart.total_cents(CATALOG) == 1000

    def test_restored_cart_clamped_to_current_stock(self):
        cart = Cart({LIMITED.product_id: 5, SOLD_OUT.product_id: 2, UNLIMITED.product_id: 4})

        lines = list(cart.lines(CATALOG))

        assert lines == [CartLine(LIMITED, 3), CartLine(UNLIMITED, 4)]
        assert cart.total_cents(CATALOG) == 3 * 1000 + 4 * 8000

    def test_line_dict(self):
        line = CartLine(LIMITED, 2)
        assert line.to_dict() == {
            "product_id": 1,
            "product_name": "Tire",
            "quantity": 2,
            "unit_price_cents": 1000,
            "subtotal_cents": 2000,
        }

    def test_to_order_items(self):
        cart = Cart()
        cart.set_exact(LIMITED, 2)
        assert cart.to_order_items() == [{"product_id": 1, "quantity": 2}]

    def test_catalog_item_from_public_dict(self):
        item = CatalogItem.from_dict({"id": 7, "name": "Cap", "price_cents": 150, "stock": -1})
        assert item.stock_level.is_unlimited
        assert item.price_cents == 150


class TestCartCheckout:
    """Cart contents feed order creation."""

    def test_cart_to_order(self, db_session, company_a, product_a):
        cart = Cart()
        item = CatalogItem.from_product(product_a)
        cart.set_exact(item, 10)

        order = order_service.create_order(company_a.id, None, cart.to_order_items())

        assert order.total_cents == 3000
