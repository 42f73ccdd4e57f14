"""Fan-out of committed order changes to WebSocket rooms.

Each ``publish_*`` coroutine is called only after the change is committed.
Delivery is best effort: a client that misses an event still sees the right
state on its next fetch, so failures here are logged and never raised.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from .rooms import AVAILABLE_ORDERS_ROOM, ConnectionContext, RoomManager, manager as default_manager, vendor_room

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _safe_broadcast(rooms: RoomManager, room: str, event: str, data, exclude) -> None:
    try:
        await rooms.broadcast(room, event, data, exclude=exclude)
    except Exception:
        logger.exception("Broadcast of %s to %s failed", event, room)


async def publish_order_created(order: dict, exclude: Optional[ConnectionContext] = None,
                                rooms: RoomManager = default_manager) -> None:
    await _safe_broadcast(rooms, AVAILABLE_ORDERS_ROOM, "order:created", order, exclude)


async def publish_order_accepted(order: dict, exclude: Optional[ConnectionContext] = None,
                                 rooms: RoomManager = default_manager) -> None:
    ts = _timestamp()
    # other partners drop it from their list, the vendor sees who took it
    await _safe_broadcast(rooms, AVAILABLE_ORDERS_ROOM, "order:accepted",
                          {"orderId": order["id"], "timestamp": ts}, exclude)
    await _safe_broadcast(rooms, vendor_room(order["vendorId"]), "delivery:status-changed",
                          {"order": order, "timestamp": ts}, exclude)


async def publish_order_cancelled(order: dict, exclude: Optional[ConnectionContext] = None,
                                  rooms: RoomManager = default_manager) -> None:
    await _safe_broadcast(rooms, AVAILABLE_ORDERS_ROOM, "order:cancelled", {"orderId": order["id"]}, exclude)


async def publish_status_changed(order: dict, exclude: Optional[ConnectionContext] = None,
                                 rooms: RoomManager = default_manager) -> None:
    await _safe_broadcast(rooms, vendor_room(order["vendorId"]), "delivery:status-changed",
                          {"order": order, "timestamp": _timestamp()}, exclude)


async def publish_delivery_completed(order: dict, exclude: Optional[ConnectionContext] = None,
                                     rooms: RoomManager = default_manager) -> None:
    await _safe_broadcast(rooms, vendor_room(order["vendorId"]), "delivery:completed",
                          {"order": order, "timestamp": _timestamp()}, exclude)


async def publish_delivery_update(order: dict, exclude: Optional[ConnectionContext] = None,
                                  rooms: RoomManager = default_manager) -> None:
    """Status advanced by the assigned partner; DELIVERED gets its own event."""
    if order["status"] == "DELIVERED":
        await publish_delivery_completed(order, exclude, rooms)
    else:
        await publish_status_changed(order, exclude, rooms)
