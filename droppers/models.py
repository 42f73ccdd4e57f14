from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, String
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
import uuid

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    VENDOR = "VENDOR"
    DELIVERY_PARTNER = "DELIVERY_PARTNER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    vendor_orders = relationship("Order", back_populates="vendor", foreign_keys="Order.vendor_id")
    deliveries = relationship("Order", back_populates="dropper", foreign_keys="Order.dropper_id")


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Order(Base):
    __tablename__ = "orders"
    id = Column(String(36), primary_key=True, default=_uuid)
    pickup_address = Column(String, nullable=False)
    delivery_address = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    item_description = Column(String, nullable=False)
    order_value = Column(Float, default=0, nullable=False)
    calculated_distance = Column(Float, nullable=True)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    # set at creation, never changes
    vendor_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # set exactly once, on acceptance
    dropper_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    vendor = relationship("User", back_populates="vendor_orders", foreign_keys=[vendor_id])
    dropper = relationship("User", back_populates="deliveries", foreign_keys=[dropper_id])
