from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar
import re

from .models import OrderStatus, UserRole
from .settings import settings

T = TypeVar("T")

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case."""
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Envelope(CamelModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[str] = None


# --- users ------------------------------------------------------------------

class UserCreate(CamelModel):
    email: EmailStr
    password: str
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    role: Literal["VENDOR", "DELIVERY_PARTNER"]

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        if len(v) < settings.DROPPERS_MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {settings.DROPPERS_MIN_PASSWORD_LENGTH} characters long")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserSummary(CamelModel):
    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None


class UserOut(UserSummary):
    role: UserRole
    is_active: bool
    created_at: datetime


class AuthOut(CamelModel):
    token: str
    user: UserOut


class ProfileOut(CamelModel):
    user: UserOut


# --- orders -----------------------------------------------------------------

def _min_length(value: str, minimum: int, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) < minimum:
        raise ValueError(f"{label} must be at least {minimum} characters long")
    return value


class OrderCreate(CamelModel):
    pickup_address: str
    delivery_address: str
    customer_name: str
    customer_phone: str
    item_description: str
    order_value: float = Field(default=0, ge=0)

    @field_validator("pickup_address")
    @classmethod
    def pickup_long_enough(cls, v: str) -> str:
        return _min_length(v, settings.DROPPERS_MIN_ADDRESS_LENGTH, "Pickup address")

    @field_validator("delivery_address")
    @classmethod
    def delivery_long_enough(cls, v: str) -> str:
        return _min_length(v, settings.DROPPERS_MIN_ADDRESS_LENGTH, "Delivery address")

    @field_validator("customer_name")
    @classmethod
    def name_long_enough(cls, v: str) -> str:
        return _min_length(v, settings.DROPPERS_MIN_CUSTOMER_NAME_LENGTH, "Customer name")

    @field_validator("item_description")
    @classmethod
    def description_long_enough(cls, v: str) -> str:
        return _min_length(v, settings.DROPPERS_MIN_ITEM_DESCRIPTION_LENGTH, "Item description")

    @field_validator("customer_phone")
    @classmethod
    def phone_looks_valid(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Customer phone is required")
        if not PHONE_PATTERN.match(v):
            raise ValueError("Please enter a valid phone number")
        return v


class OrderOut(CamelModel):
    id: str
    pickup_address: str
    delivery_address: str
    customer_name: str
    customer_phone: str
    item_description: str
    order_value: float
    calculated_distance: Optional[float] = None
    status: OrderStatus
    vendor_id: str
    dropper_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    vendor: Optional[UserSummary] = None
    dropper: Optional[UserSummary] = None


class StatusUpdate(CamelModel):
    status: OrderStatus


class VendorStats(CamelModel):
    total_orders: int
    pending_orders: int
    delivered_orders: int
    total_revenue: float


class DeliveryStats(CamelModel):
    total_deliveries: int
    completed_deliveries: int
    active_deliveries: int
    total_earnings: float
    pending_earnings: float


class HealthOut(CamelModel):
    env: str
    version: str
    timestamp: datetime


def serialize_order(order) -> dict:
    """JSON-ready camelCase dict for REST bodies and broadcast payloads."""
    return OrderOut.model_validate(order).model_dump(mode="json", by_alias=True)


def serialize_orders(orders) -> List[dict]:
    return [serialize_order(o) for o in orders]
