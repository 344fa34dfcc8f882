"""
Local order list shown on the owner's orders page.

Approve/cancel flip the row immediately and call the server; a failed call
restores the list exactly as it was (see OptimisticCommand).
"""

from __future__ import annotations

from typing import Callable

from .models.orders import STATUS_APPROVED, STATUS_CANCELLED, TERMINAL_STATUSES
from .optimistic import OptimisticCommand
from .services.order_service import require_transition


class DashboardOrderBoard:
    def __init__(
        self,
        orders: list[dict],
        *,
        approve: Callable[[int], dict],
        cancel: Callable[[int], dict],
    ):
        self.orders = orders
        self._approve = approve
        self._cancel = cancel

    @classmethod
    def for_owner(cls, ctx, page: int = 1) -> "DashboardOrderBoard":
        from .services import order_service

        listing = order_service.list_orders(ctx, page=page)
        return cls(
            listing["items"],
            approve=lambda order_id: order_service.approve_order(ctx, order_id).to_dict(),
            cancel=lambda order_id: order_service.cancel_order(ctx, order_id).to_dict(),
        )

    def find(self, order_id: int) -> dict | None:
        for order in self.orders:
            if order["id"] == order_id:
                return order
        return None

    def _transition(self, order_id: int, target: str, request: Callable[[int], dict]) -> dict:
        order = self.find(order_id)
        if order is None:
            raise KeyError(order_id)
        require_transition(order["status"], target)

        def apply(orders: list[dict]) -> None:
            for row in orders:
                if row["id"] == order_id:
                    row["status"] = target
                    row["is_terminal"] = target in TERMINAL_STATUSES

        command = OptimisticCommand(self.orders, apply, lambda: request(order_id))
        confirmed = command.run()

        # Server state wins over the tentative row
        for index, row in enumerate(self.orders):
            if row["id"] == order_id:
                self.orders[index] = {**row, **confirmed}
        return self.find(order_id)

    def approve(self, order_id: int) -> dict:
        return self._transition(order_id, STATUS_APPROVED, self._approve)

    def cancel(self, order_id: int) -> dict:
        return self._transition(order_id, STATUS_CANCELLED, self._cancel)
