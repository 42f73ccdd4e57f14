from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps_jwt import get_current_user
from ..models import User
from ..order_service import OrderService
from ..schemas import Envelope, OrderOut, serialize_order

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order(order_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Any authenticated caller, limited to orders visible to them."""
    order = OrderService(db).get_order(order_id, current_user)
    return {"success": True, "message": "Order retrieved successfully", "data": serialize_order(order)}
