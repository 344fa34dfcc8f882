"""
Stock level interpretation.

Products persist stock as one integer column with an overloaded meaning:
  stock > 0   -> limited to that many units
  stock == 0  -> unavailable, purchase blocked
  stock < 0   -> unlimited (NULL is treated the same way)

StockLevel turns the raw column into an explicit tagged value so callers
never compare against the sentinel directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class Availability(str, Enum):
    UNAVAILABLE = "UNAVAILABLE"
    LIMITED = "LIMITED"
    UNLIMITED = "UNLIMITED"


UNLIMITED_STOCK = -1


@dataclass(frozen=True)
class StockLevel:
    availability: Availability
    limit: int | None = None

    @classmethod
    def from_raw(cls, raw: int | None) -> "StockLevel":
        if raw is None or raw < 0:
            return cls(Availability.UNLIMITED)
        if raw == 0:
            return cls(Availability.UNAVAILABLE)
        return cls(Availability.LIMITED, int(raw))

    @classmethod
    def unlimited(cls) -> "StockLevel":
        return cls(Availability.UNLIMITED)

    @property
    def is_unlimited(self) -> bool:
        return self.availability is Availability.UNLIMITED

    @property
    def is_unavailable(self) -> bool:
        return self.availability is Availability.UNAVAILABLE

    def allows(self, quantity: int) -> bool:
        """True when `quantity` units can be purchased."""
        if quantity <= 0:
            return True
        if self.is_unavailable:
            return False
        if self.is_unlimited:
            return True
        return quantity <= self.limit

    def clamp(self, quantity: float) -> int:
        """Clamp a desired quantity into [0, limit] (or [0, inf) when unlimited)."""
        if quantity is None or not math.isfinite(quantity):
            return 0
        qty = max(0, math.floor(quantity))
        if self.is_unavailable:
            return 0
        if self.is_unlimited:
            return qty
        return min(qty, self.limit)

    def after_decrement(self, raw: int, quantity: int) -> int:
        """Raw stock value after committing `quantity` units, floored at zero."""
        if self.is_unlimited:
            return raw
        return max(raw - quantity, 0)

    def to_dict(self) -> dict:
        return {"availability": self.availability.value, "limit": self.limit}
