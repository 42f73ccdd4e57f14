from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from .. import broadcast
from ..database import get_db
from ..deps_jwt import require_delivery_partner
from ..models import User
from ..order_service import OrderService
from ..schemas import DeliveryStats, Envelope, OrderOut, StatusUpdate, serialize_order, serialize_orders

router = APIRouter(prefix="/orders/delivery", tags=["delivery"])


@router.get("/available", response_model=Envelope[List[OrderOut]])
def available(db: Session = Depends(get_db), dropper: User = Depends(require_delivery_partner)):
    orders = OrderService(db).list_available_orders()
    return {"success": True, "message": "Available orders retrieved successfully", "data": serialize_orders(orders)}


@router.get("/my-deliveries", response_model=Envelope[List[OrderOut]])
def my_deliveries(db: Session = Depends(get_db), dropper: User = Depends(require_delivery_partner)):
    orders = OrderService(db).list_deliveries(dropper)
    return {"success": True, "message": "Deliveries retrieved successfully", "data": serialize_orders(orders)}


@router.get("/stats", response_model=Envelope[DeliveryStats])
def stats(db: Session = Depends(get_db), dropper: User = Depends(require_delivery_partner)):
    data = OrderService(db).delivery_stats(dropper)
    return {"success": True, "message": "Delivery stats retrieved successfully", "data": data}


@router.post("/{order_id}/accept", response_model=Envelope[OrderOut])
def accept(
    order_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dropper: User = Depends(require_delivery_partner),
):
    order = serialize_order(OrderService(db).accept_order(order_id, dropper))
    background_tasks.add_task(broadcast.publish_order_accepted, order)
    return {"success": True, "message": "Order accepted successfully", "data": order}


@router.patch("/{order_id}/status", response_model=Envelope[OrderOut])
def update_status(
    order_id: str,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dropper: User = Depends(require_delivery_partner),
):
    order = serialize_order(OrderService(db).advance_delivery(order_id, dropper, payload.status))
    background_tasks.add_task(broadcast.publish_delivery_update, order)
    return {"success": True, "message": "Delivery status updated successfully", "data": order}


@router.post("/{order_id}/complete", response_model=Envelope[OrderOut])
def complete(
    order_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dropper: User = Depends(require_delivery_partner),
):
    order = serialize_order(OrderService(db).complete_delivery(order_id, dropper))
    background_tasks.add_task(broadcast.publish_delivery_completed, order)
    return {"success": True, "message": "Order marked as delivered", "data": order}
