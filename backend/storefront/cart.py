"""
Shopper cart, kept in memory until checkout.

The cart only maps product id -> desired quantity. Quantities are clamped
against each product's StockLevel on every adjustment:
  LIMITED(n)  -> [0, n]
  UNLIMITED   -> [0, inf)
  UNAVAILABLE -> increments are ignored, anything else becomes 0
No I/O happens here; the server re-checks stock when the order is created.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping

from .stock import StockLevel


@dataclass(frozen=True)
class CatalogItem:
    """The slice of a product the cart needs."""
    product_id: int
    name: str
    price_cents: int
    stock_level: StockLevel

    @classmethod
    def from_product(cls, product) -> "CatalogItem":
        return cls(product.id, product.name, product.price_cents, product.stock_level)

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogItem":
        """Build from a product dict as served by the public catalog."""
        return cls(
            product_id=data["id"],
            name=data["name"],
            price_cents=int(data.get("price_cents") or 0),
            stock_level=StockLevel.from_raw(data.get("stock")),
        )


@dataclass(frozen=True)
class CartLine:
    product: CatalogItem
    quantity: int

    @property
    def subtotal_cents(self) -> int:
        return self.product.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product.product_id,
            "product_name": self.product.name,
            "quantity": self.quantity,
            "unit_price_cents": self.product.price_cents,
            "subtotal_cents": self.subtotal_cents,
        }


class Cart:
    def __init__(self, quantities: Mapping[int, int] | None = None):
        self._quantities: dict[int, int] = {}
        for product_id, quantity in (quantities or {}).items():
            if quantity and quantity > 0:
                self._quantities[product_id] = int(quantity)

    def __len__(self) -> int:
        return len(self._quantities)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._quantities

    def quantity(self, product_id: int) -> int:
        return self._quantities.get(product_id, 0)

    def _store(self, product_id: int, quantity: int) -> int:
        if quantity > 0:
            self._quantities[product_id] = quantity
        else:
            self._quantities.pop(product_id, None)
        return quantity

    def increment(self, item: CatalogItem, step: int = 1) -> int:
        current = self.quantity(item.product_id)
        if item.stock_level.is_unavailable:
            return current
        return self._store(item.product_id, item.stock_level.clamp(current + step))

    def decrement(self, item: CatalogItem, step: int = 1) -> int:
        current = self.quantity(item.product_id)
        return self._store(item.product_id, item.stock_level.clamp(current - step))

    def set_exact(self, item: CatalogItem, quantity) -> int:
        """Set a typed-in quantity: floored, non-finite becomes 0, then clamped."""
        try:
            value = float(quantity)
        except (TypeError, ValueError):
            value = 0.0
        return self._store(item.product_id, item.stock_level.clamp(value))

    def remove(self, product_id: int) -> None:
        self._quantities.pop(product_id, None)

    def clear(self) -> None:
        self._quantities.clear()

    def lines(self, catalog: Mapping[int, CatalogItem]) -> Iterator[CartLine]:
        """
        Non-zero lines for products present in `catalog`, in insertion order.

        Quantities are clamped against the catalog's current stock, so a cart
        restored from storage never prices more than is available.
        """
        for product_id, quantity in self._quantities.items():
            item = catalog.get(product_id)
            if item is None:
                continue
            quantity = item.stock_level.clamp(quantity)
            if quantity <= 0:
                continue
            yield CartLine(item, quantity)

    def total_cents(self, catalog: Mapping[int, CatalogItem]) -> int:
        return sum(line.subtotal_cents for line in self.lines(catalog))

    def to_order_items(self) -> list[dict]:
        return [
            {"product_id": product_id, "quantity": quantity}
            for product_id, quantity in self._quantities.items()
            if quantity > 0
        ]
