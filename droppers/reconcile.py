"""Dashboard view state kept in sync by server events.

This is what a connected dashboard does with the frames it receives: explicit
fetches (``load_*``) replace a list wholesale and are the source of truth;
broadcast events patch the lists in between. A missed event is repaired by the
next fetch, so ``apply`` never needs to be perfect, only never wrong about an
order it has newer data for.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List


class DashboardState:
    def __init__(self) -> None:
        self.available_orders: "OrderedDict[str, dict]" = OrderedDict()
        self.vendor_orders: "OrderedDict[str, dict]" = OrderedDict()
        self.deliveries: "OrderedDict[str, dict]" = OrderedDict()

    # --- explicit fetches ---------------------------------------------------

    @staticmethod
    def _replace(target: "OrderedDict[str, dict]", orders: Iterable[dict]) -> None:
        target.clear()
        for order in orders:
            target[order["id"]] = order

    def load_available(self, orders: Iterable[dict]) -> None:
        self._replace(self.available_orders, orders)

    def load_vendor_orders(self, orders: Iterable[dict]) -> None:
        self._replace(self.vendor_orders, orders)

    def load_deliveries(self, orders: Iterable[dict]) -> None:
        self._replace(self.deliveries, orders)

    # --- server events ------------------------------------------------------

    def apply(self, event: str, data: dict) -> bool:
        """Fold one server event into the state; returns False for events it ignores."""
        handler = self._HANDLERS.get(event)
        if handler is None:
            return False
        handler(self, data)
        return True

    def _on_created(self, order: dict) -> None:
        if order.get("status") != "PENDING" or order.get("dropperId"):
            return
        self.available_orders[order["id"]] = order
        self.available_orders.move_to_end(order["id"], last=False)

    def _on_removed(self, data: dict) -> None:
        self.available_orders.pop(data["orderId"], None)

    def _on_order_changed(self, data: dict) -> None:
        order = data["order"]
        order_id = order["id"]
        known = order_id in self.vendor_orders
        self.vendor_orders[order_id] = order
        if not known:
            # joined the vendor room before the list was fetched
            self.vendor_orders.move_to_end(order_id, last=False)
        if order_id in self.deliveries:
            self.deliveries[order_id] = order
        if order.get("status") != "PENDING":
            self.available_orders.pop(order_id, None)

    _HANDLERS = {
        "order:created": _on_created,
        "order:accepted": _on_removed,
        "order:cancelled": _on_removed,
        "delivery:status-changed": _on_order_changed,
        "delivery:completed": _on_order_changed,
    }

    # --- views --------------------------------------------------------------

    def available_list(self) -> List[dict]:
        return list(self.available_orders.values())

    def vendor_list(self) -> List[dict]:
        return list(self.vendor_orders.values())

    def delivery_list(self) -> List[dict]:
        return list(self.deliveries.values())

    def counts(self) -> Dict[str, int]:
        statuses = [o.get("status") for o in self.vendor_orders.values()]
        return {
            "available": len(self.available_orders),
            "total": len(statuses),
            "pending": statuses.count("PENDING"),
            "delivered": statuses.count("DELIVERED"),
        }
