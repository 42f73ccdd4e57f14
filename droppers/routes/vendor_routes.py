from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from .. import broadcast
from ..database import get_db
from ..deps_jwt import require_vendor
from ..distance import DistanceEstimator, get_distance_estimator
from ..models import User
from ..order_service import OrderService
from ..schemas import Envelope, OrderCreate, OrderOut, StatusUpdate, VendorStats, serialize_order, serialize_orders

router = APIRouter(prefix="/orders/vendor", tags=["vendor"])


@router.post("/create", response_model=Envelope[OrderOut], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    vendor: User = Depends(require_vendor),
    distance: DistanceEstimator = Depends(get_distance_estimator),
):
    order = serialize_order(OrderService(db, distance).create_order(vendor, payload))
    background_tasks.add_task(broadcast.publish_order_created, order)
    return {"success": True, "message": "Order created successfully", "data": order}


@router.get("/my-orders", response_model=Envelope[List[OrderOut]])
def my_orders(db: Session = Depends(get_db), vendor: User = Depends(require_vendor)):
    orders = OrderService(db).list_vendor_orders(vendor)
    return {"success": True, "message": "Orders retrieved successfully", "data": serialize_orders(orders)}


@router.get("/stats", response_model=Envelope[VendorStats])
def stats(db: Session = Depends(get_db), vendor: User = Depends(require_vendor)):
    return {"success": True, "message": "Stats retrieved successfully", "data": OrderService(db).vendor_stats(vendor)}


@router.patch("/{order_id}/status", response_model=Envelope[OrderOut])
def update_status(
    order_id: str,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    vendor: User = Depends(require_vendor),
):
    order = serialize_order(OrderService(db).update_vendor_status(order_id, vendor, payload.status))
    background_tasks.add_task(broadcast.publish_order_cancelled, order)
    return {"success": True, "message": "Order status updated successfully", "data": order}


@router.delete("/{order_id}/cancel", response_model=Envelope[OrderOut])
def cancel(
    order_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    vendor: User = Depends(require_vendor),
):
    order = serialize_order(OrderService(db).cancel_order(order_id, vendor))
    background_tasks.add_task(broadcast.publish_order_cancelled, order)
    return {"success": True, "message": "Order cancelled successfully", "data": order}
