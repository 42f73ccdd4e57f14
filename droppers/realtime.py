"""WebSocket endpoint for live order updates.

Connect with::

    ws://127.0.0.1:8000/api/ws/events?token=<jwt>

Client frames are JSON ``{"event": name, "args": [...], "ack": id?}``; server
frames are ``{"event": name, "data": payload}``. When a client frame carries
``ack``, the server answers ``{"event": "ack", "ack": id, "data": {"success",
"message"}}``. Handler errors are reported that way and logged; they never
close the connection.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from . import broadcast
from .database import SessionLocal
from .deps_jwt import user_from_token
from .errors import AuthenticationError, AuthorizationError, DroppersError, ValidationError
from .models import OrderStatus, User, UserRole
from .order_service import OrderService
from .rooms import AVAILABLE_ORDERS_ROOM, ConnectionContext, dropper_room, manager, vendor_room
from .schemas import serialize_order

logger = logging.getLogger(__name__)

router = APIRouter()

Handler = Callable[[ConnectionContext, List[Any]], Awaitable[str]]


# --- service calls (run in a worker thread, own session) ---------------------

def _run_order_action(user_id: str, action: Callable[[OrderService, User], Any]) -> dict:
    db = SessionLocal()
    try:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")
        order = action(OrderService(db), user)
        return serialize_order(order)
    finally:
        db.close()


def _authenticate(token: Optional[str]) -> User:
    db = SessionLocal()
    try:
        user = user_from_token(token, db)
        db.expunge(user)
        return user
    finally:
        db.close()


# --- argument helpers ---------------------------------------------------------

def _arg(args: List[Any], index: int, name: str) -> Any:
    if len(args) <= index or args[index] in (None, ""):
        raise ValidationError(f"{name} is required")
    return args[index]


def _payload(args: List[Any], *keys: str) -> dict:
    data = _arg(args, 0, "payload")
    if not isinstance(data, dict):
        raise ValidationError("payload must be an object")
    for key in keys:
        if not data.get(key):
            raise ValidationError(f"{key} is required")
    return data


def _can_join(ctx: ConnectionContext, role: UserRole) -> bool:
    return ctx.role in (role.value, UserRole.ADMIN.value)


# --- event handlers -----------------------------------------------------------

async def join_vendor(ctx: ConnectionContext, args: List[Any]) -> str:
    vendor_id = str(_arg(args, 0, "vendorId"))
    if not _can_join(ctx, UserRole.VENDOR) or (ctx.role != UserRole.ADMIN.value and vendor_id != ctx.user_id):
        raise AuthorizationError("Cannot join another vendor's room")
    room = vendor_room(vendor_id)
    manager.join(room, ctx)
    await manager.send_personal(ctx, "joined", {"room": room})
    return f"Joined {room}"


async def join_dropper(ctx: ConnectionContext, args: List[Any]) -> str:
    dropper_id = str(_arg(args, 0, "dropperId"))
    if not _can_join(ctx, UserRole.DELIVERY_PARTNER) or (ctx.role != UserRole.ADMIN.value and dropper_id != ctx.user_id):
        raise AuthorizationError("Cannot join another delivery partner's room")
    room = dropper_room(dropper_id)
    manager.join(room, ctx)
    await manager.send_personal(ctx, "joined", {"room": room})
    return f"Joined {room}"


async def join_available_orders(ctx: ConnectionContext, args: List[Any]) -> str:
    if not _can_join(ctx, UserRole.DELIVERY_PARTNER):
        raise AuthorizationError("Only delivery partners can watch available orders")
    manager.join(AVAILABLE_ORDERS_ROOM, ctx)
    await manager.send_personal(ctx, "joined", {"room": AVAILABLE_ORDERS_ROOM})
    return f"Joined {AVAILABLE_ORDERS_ROOM}"


async def accept_order(ctx: ConnectionContext, args: List[Any]) -> str:
    order_id = str(_arg(args, 0, "orderId"))
    dropper_id = str(_arg(args, 1, "dropperId"))
    if dropper_id != ctx.user_id:
        raise AuthorizationError("Cannot accept orders on behalf of another delivery partner")
    order = await run_in_threadpool(
        _run_order_action, ctx.user_id, lambda svc, user: svc.accept_order(order_id, user)
    )
    await broadcast.publish_order_accepted(order, exclude=ctx)
    return "Order accepted successfully"


async def update_delivery_status(ctx: ConnectionContext, args: List[Any]) -> str:
    data = _payload(args, "orderId", "status")
    try:
        new_status = OrderStatus(data["status"])
    except ValueError:
        raise ValidationError(f"Unknown status {data['status']!r}")
    order = await run_in_threadpool(
        _run_order_action, ctx.user_id,
        lambda svc, user: svc.advance_delivery(str(data["orderId"]), user, new_status),
    )
    await broadcast.publish_delivery_update(order, exclude=ctx)
    return f"Order status updated to {new_status.value}"


async def complete_delivery(ctx: ConnectionContext, args: List[Any]) -> str:
    data = _payload(args, "orderId")
    order = await run_in_threadpool(
        _run_order_action, ctx.user_id,
        lambda svc, user: svc.complete_delivery(str(data["orderId"]), user),
    )
    await broadcast.publish_delivery_completed(order, exclude=ctx)
    return "Order marked as delivered"


HANDLERS: Dict[str, Handler] = {
    "join:vendor": join_vendor,
    "join:dropper": join_dropper,
    "join:available-orders": join_available_orders,
    "order:accept": accept_order,
    "delivery:status-update": update_delivery_status,
    "delivery:completed": complete_delivery,
}


async def dispatch(ctx: ConnectionContext, raw: Union[str, bytes]) -> None:
    """Run one client frame; errors become a failed ack, never a dropped socket."""
    ack = None
    event = None
    try:
        try:
            frame = json.loads(raw)
        except ValueError:
            raise ValidationError("Frames must be JSON objects")
        if not isinstance(frame, dict):
            raise ValidationError("Frames must be JSON objects")
        ack = frame.get("ack")
        event = frame.get("event")
        args = frame.get("args") or []
        if not isinstance(args, list):
            args = [args]
        handler = HANDLERS.get(event)
        if handler is None:
            raise ValidationError(f"Unknown event {event!r}")
        message = await handler(ctx, args)
        success = True
    except DroppersError as exc:
        logger.warning("Event %s from %s rejected: %s", event, ctx.id, exc.message)
        success, message = False, exc.message
    except Exception:
        logger.exception("Event %s from %s failed", event, ctx.id)
        success, message = False, f"Failed to handle {event}"

    if ack is not None:
        await manager.send_personal(ctx, "ack", {"success": success, "message": message}, ack=ack)
    elif not success:
        await manager.send_personal(ctx, "error", {"event": event, "message": message})


@router.websocket("/ws/events")
async def ws_events(websocket: WebSocket, token: Optional[str] = Query(None)):
    try:
        user = await run_in_threadpool(_authenticate, token)
    except AuthenticationError as exc:
        logger.info("Rejected WebSocket connection: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    ctx = ConnectionContext(websocket, user_id=user.id, role=user.role.value)
    await manager.connect(ctx)
    logger.info("User %s connected as %s", ctx.user_id, ctx)
    await manager.send_personal(ctx, "connected", {"connectionId": ctx.id, "userId": ctx.user_id, "role": ctx.role})

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
            # binary frames go through the same JSON parsing and error reply
            raw = message.get("text")
            await dispatch(ctx, raw if raw is not None else message.get("bytes") or b"")
    except WebSocketDisconnect as exc:
        logger.info("User %s disconnected (code %s)", ctx.user_id, exc.code)
    finally:
        manager.disconnect(ctx)
