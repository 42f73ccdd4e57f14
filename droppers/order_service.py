"""Order service: validation, role-scoped access and the order lifecycle.

Every status change is written with a single conditional UPDATE whose WHERE
clause repeats the preconditions (expected source status, and for delivery
steps the assigned partner). If another request changed the row in between,
the UPDATE matches nothing and the caller gets a typed error instead of a
lost update. Both the REST routes and the WebSocket handlers go through this
module; neither talks to the ``orders`` table directly.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .distance import DistanceEstimator, RandomDistanceEstimator
from .errors import AuthorizationError, InvalidTransition, NotFoundError, OrderAlreadyTaken
from .lifecycle import ACTIVE_STATUSES, OrderEvent, Transition, event_for_target, transition_for
from .models import Order, OrderStatus, User, UserRole
from .schemas import OrderCreate
from .settings import settings

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: Session, distance_estimator: Optional[DistanceEstimator] = None):
        self.db = db
        self.distance = distance_estimator or RandomDistanceEstimator()

    # --- helpers ------------------------------------------------------------

    @staticmethod
    def _require_role(user: User, role: UserRole) -> None:
        if user.role != role:
            raise AuthorizationError("Insufficient permissions for this action")

    def _load(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _conditional_update(self, order_id: str, rule: Transition, **where) -> bool:
        """Apply ``rule`` only if the row still matches; True when one row changed."""
        values = {"status": rule.target, "updated_at": datetime.now(timezone.utc)}
        query = self.db.query(Order).filter(Order.id == order_id, Order.status == rule.source)
        if rule.target == OrderStatus.ASSIGNED:
            query = query.filter(Order.dropper_id.is_(None))
            values["dropper_id"] = where.pop("assign_to")
        for column, value in where.items():
            query = query.filter(getattr(Order, column) == value)
        changed = query.update(values, synchronize_session=False)
        if changed != 1:
            self.db.rollback()
            return False
        self.db.commit()
        return True

    def _reload(self, order_id: str) -> Order:
        order = self._load(order_id)
        self.db.refresh(order)
        return order

    # --- reads --------------------------------------------------------------

    def get_order(self, order_id: str, user: User) -> Order:
        """Fetch an order the caller is allowed to see, else NotFoundError."""
        order = self._load(order_id)
        if user.role == UserRole.ADMIN:
            return order
        if user.role == UserRole.VENDOR and order.vendor_id == user.id:
            return order
        if user.role == UserRole.DELIVERY_PARTNER:
            available = order.status == OrderStatus.PENDING and order.dropper_id is None
            if available or order.dropper_id == user.id:
                return order
        raise NotFoundError("Order not found")

    def list_vendor_orders(self, vendor: User) -> List[Order]:
        self._require_role(vendor, UserRole.VENDOR)
        return (
            self.db.query(Order)
            .filter(Order.vendor_id == vendor.id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def list_available_orders(self) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status == OrderStatus.PENDING, Order.dropper_id.is_(None))
            .order_by(Order.created_at.desc())
            .all()
        )

    def list_deliveries(self, dropper: User) -> List[Order]:
        self._require_role(dropper, UserRole.DELIVERY_PARTNER)
        return (
            self.db.query(Order)
            .filter(Order.dropper_id == dropper.id)
            .order_by(Order.updated_at.desc())
            .all()
        )

    # --- vendor actions -----------------------------------------------------

    def create_order(self, vendor: User, data: OrderCreate) -> Order:
        self._require_role(vendor, UserRole.VENDOR)
        distance = self.distance.estimate(data.pickup_address, data.delivery_address)
        order = Order(
            pickup_address=data.pickup_address,
            delivery_address=data.delivery_address,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            item_description=data.item_description,
            order_value=data.order_value or 0,
            calculated_distance=max(0.0, distance),
            vendor_id=vendor.id,
            status=OrderStatus.PENDING,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        logger.info("Order %s created by vendor %s", order.id, vendor.id)
        return order

    def cancel_order(self, order_id: str, vendor: User) -> Order:
        self._require_role(vendor, UserRole.VENDOR)
        order = self._load(order_id)
        if order.vendor_id != vendor.id:
            raise NotFoundError("Order not found")
        if order.status != OrderStatus.PENDING:
            raise InvalidTransition("Only pending orders can be cancelled")
        rule = transition_for(order.status, OrderEvent.CANCEL)
        if not self._conditional_update(order_id, rule, vendor_id=vendor.id):
            raise InvalidTransition("Only pending orders can be cancelled")
        logger.info("Order %s cancelled by vendor %s", order_id, vendor.id)
        return self._reload(order_id)

    def update_vendor_status(self, order_id: str, vendor: User, status: OrderStatus) -> Order:
        """Vendors drive exactly one transition: cancelling a pending order."""
        self._require_role(vendor, UserRole.VENDOR)
        if status != OrderStatus.CANCELLED:
            order = self._load(order_id)
            if order.vendor_id != vendor.id:
                raise NotFoundError("Order not found")
            raise InvalidTransition(f"Vendors cannot move an order to {status.value}")
        return self.cancel_order(order_id, vendor)

    # --- delivery partner actions -------------------------------------------

    def accept_order(self, order_id: str, dropper: User) -> Order:
        self._require_role(dropper, UserRole.DELIVERY_PARTNER)
        order = self._load(order_id)
        if order.dropper_id is not None:
            raise OrderAlreadyTaken()
        rule = transition_for(order.status, OrderEvent.ACCEPT)
        if not self._conditional_update(order_id, rule, assign_to=dropper.id):
            # lost the race: find out to what
            current = self._reload(order_id)
            if current.dropper_id is not None:
                raise OrderAlreadyTaken()
            raise InvalidTransition(f"Cannot accept an order that is {current.status.value}")
        logger.info("Order %s accepted by delivery partner %s", order_id, dropper.id)
        return self._reload(order_id)

    def advance_delivery(self, order_id: str, dropper: User, status: OrderStatus) -> Order:
        """Move an assigned order one step along ASSIGNED -> PICKED_UP -> IN_TRANSIT -> DELIVERED."""
        self._require_role(dropper, UserRole.DELIVERY_PARTNER)
        order = self._load(order_id)
        if order.dropper_id != dropper.id:
            raise AuthorizationError("You are not assigned to this delivery")
        event = event_for_target(status)
        if event in (OrderEvent.ACCEPT, OrderEvent.CANCEL):
            raise InvalidTransition(f"Delivery partners cannot move an order to {status.value}")
        rule = transition_for(order.status, event)
        if not self._conditional_update(order_id, rule, dropper_id=dropper.id):
            current = self._reload(order_id)
            raise InvalidTransition(f"Order is now {current.status.value}")
        logger.info("Order %s moved %s -> %s by %s", order_id, rule.source.value, rule.target.value, dropper.id)
        return self._reload(order_id)

    def complete_delivery(self, order_id: str, dropper: User) -> Order:
        return self.advance_delivery(order_id, dropper, OrderStatus.DELIVERED)

    # --- stats --------------------------------------------------------------

    def _count(self, *criteria) -> int:
        return self.db.query(func.count(Order.id)).filter(*criteria).scalar() or 0

    def _sum_value(self, *criteria) -> float:
        return float(self.db.query(func.coalesce(func.sum(Order.order_value), 0)).filter(*criteria).scalar() or 0)

    def vendor_stats(self, vendor: User) -> dict:
        self._require_role(vendor, UserRole.VENDOR)
        mine = Order.vendor_id == vendor.id
        return {
            "total_orders": self._count(mine),
            "pending_orders": self._count(mine, Order.status == OrderStatus.PENDING),
            "delivered_orders": self._count(mine, Order.status == OrderStatus.DELIVERED),
            "total_revenue": self._sum_value(mine, Order.status == OrderStatus.DELIVERED),
        }

    def delivery_stats(self, dropper: User) -> dict:
        self._require_role(dropper, UserRole.DELIVERY_PARTNER)
        mine = Order.dropper_id == dropper.id
        rate = settings.DROPPERS_COMMISSION_RATE
        delivered = self._sum_value(mine, Order.status == OrderStatus.DELIVERED)
        in_progress = self._sum_value(mine, Order.status.in_(list(ACTIVE_STATUSES)))
        return {
            "total_deliveries": self._count(mine),
            "completed_deliveries": self._count(mine, Order.status == OrderStatus.DELIVERED),
            "active_deliveries": self._count(mine, Order.status.in_(list(ACTIVE_STATUSES))),
            "total_earnings": round(delivered * rate, 2),
            "pending_earnings": round(in_progress * rate, 2),
        }
