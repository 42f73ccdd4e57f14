"""Order status state machine.

Pure rules, no database access: which event moves an order from which status
to which, and which role may trigger it. ``order_service`` consults this table
before every write and commits with a conditional update on the source status.
"""

import enum
from typing import Dict, NamedTuple, Tuple

from .errors import InvalidTransition
from .models import OrderStatus, UserRole


class OrderEvent(str, enum.Enum):
    ACCEPT = "accept"
    CANCEL = "cancel"
    PICK_UP = "pick_up"
    START_DELIVERY = "start_delivery"
    COMPLETE = "complete"


class Transition(NamedTuple):
    source: OrderStatus
    target: OrderStatus
    actor: UserRole


TRANSITIONS: Dict[Tuple[OrderStatus, OrderEvent], Transition] = {
    (OrderStatus.PENDING, OrderEvent.ACCEPT):
        Transition(OrderStatus.PENDING, OrderStatus.ASSIGNED, UserRole.DELIVERY_PARTNER),
    (OrderStatus.PENDING, OrderEvent.CANCEL):
        Transition(OrderStatus.PENDING, OrderStatus.CANCELLED, UserRole.VENDOR),
    (OrderStatus.ASSIGNED, OrderEvent.PICK_UP):
        Transition(OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, UserRole.DELIVERY_PARTNER),
    (OrderStatus.PICKED_UP, OrderEvent.START_DELIVERY):
        Transition(OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT, UserRole.DELIVERY_PARTNER),
    (OrderStatus.IN_TRANSIT, OrderEvent.COMPLETE):
        Transition(OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED, UserRole.DELIVERY_PARTNER),
}

TARGET_EVENTS: Dict[OrderStatus, OrderEvent] = {
    OrderStatus.ASSIGNED: OrderEvent.ACCEPT,
    OrderStatus.CANCELLED: OrderEvent.CANCEL,
    OrderStatus.PICKED_UP: OrderEvent.PICK_UP,
    OrderStatus.IN_TRANSIT: OrderEvent.START_DELIVERY,
    OrderStatus.DELIVERED: OrderEvent.COMPLETE,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT})


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def transition_for(current: OrderStatus, event: OrderEvent) -> Transition:
    rule = TRANSITIONS.get((current, event))
    if rule is None:
        raise InvalidTransition(f"Cannot {event.value.replace('_', ' ')} an order that is {current.value}")
    return rule


def event_for_target(target: OrderStatus) -> OrderEvent:
    """Map a requested status (as sent in a PATCH body) to the event producing it."""
    event = TARGET_EVENTS.get(target)
    if event is None:
        raise InvalidTransition(f"An order cannot be moved to {target.value}")
    return event
