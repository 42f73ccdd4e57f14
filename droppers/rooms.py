from __future__ import annotations

import json
import logging
import uuid
from typing import Dict, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

AVAILABLE_ORDERS_ROOM = "available-orders"


def vendor_room(vendor_id: str) -> str:
    return f"vendor:{vendor_id}"


def dropper_room(dropper_id: str) -> str:
    return f"dropper:{dropper_id}"


class ConnectionContext:
    """State belonging to one WebSocket connection: who it is and what it joined."""

    def __init__(self, websocket: WebSocket, user_id: str, role: str) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self.role = role
        self.rooms: Set[str] = set()
        self.id = uuid.uuid4().hex

    def __repr__(self) -> str:
        return f"<ConnectionContext {self.id} user={self.user_id} role={self.role}>"


class RoomManager:
    """
    In-memory room membership for connected WebSockets.
    Single-process only; several server instances would need a shared broker.
    """
    def __init__(self) -> None:
        # room -> set[ConnectionContext]
        self.rooms: Dict[str, Set[ConnectionContext]] = {}

    async def connect(self, ctx: ConnectionContext) -> None:
        await ctx.websocket.accept()

    def join(self, room: str, ctx: ConnectionContext) -> None:
        self.rooms.setdefault(room, set()).add(ctx)
        ctx.rooms.add(room)
        logger.info("Connection %s (user %s) joined room %s", ctx.id, ctx.user_id, room)

    def leave(self, room: str, ctx: ConnectionContext) -> None:
        members = self.rooms.get(room)
        ctx.rooms.discard(room)
        if not members:
            return
        members.discard(ctx)
        if not members:
            self.rooms.pop(room, None)

    def disconnect(self, ctx: ConnectionContext) -> None:
        for room in list(ctx.rooms):
            self.leave(room, ctx)

    def members(self, room: str) -> Set[ConnectionContext]:
        return set(self.rooms.get(room, ()))

    async def send_personal(self, ctx: ConnectionContext, event: str, data=None, **extra) -> None:
        frame = {"event": event, "data": data, **extra}
        await ctx.websocket.send_text(json.dumps(frame))

    async def broadcast(self, room: str, event: str, data, exclude: Optional[ConnectionContext] = None) -> int:
        """Send to every member of ``room`` except ``exclude``; returns how many were reached."""
        text = json.dumps({"event": event, "data": data})
        sent = 0
        for ctx in list(self.rooms.get(room, [])):
            if ctx is exclude:
                continue
            try:
                await ctx.websocket.send_text(text)
                sent += 1
            except Exception:
                # Drop dead sockets
                logger.warning("Dropping dead connection %s from %s", ctx.id, room)
                self.disconnect(ctx)
        logger.debug("Broadcast %s to %s (%d recipients)", event, room, sent)
        return sent


manager = RoomManager()
