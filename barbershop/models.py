# barbershop/models.py

from typing import Optional, List
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


def new_id() -> str:
    return uuid4().hex


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


# statuses that hold a barber's chair
ACTIVE_STATUSES = (AppointmentStatus.pending, AppointmentStatus.confirmed)


class BookedBy(str, Enum):
    client = "client"
    staff = "staff"


class Service(SQLModel):
    id: str = Field(default_factory=new_id)
    name: str
    price: Decimal = Field(ge=0)
    duration_minutes: int = Field(gt=0)
    description: Optional[str] = None


class Barber(SQLModel):
    id: str = Field(default_factory=new_id)
    name: str
    username: str
    password_hash: str
    active: bool = True
    is_admin: bool = False
    assigned_services: List[str] = Field(default_factory=list)
    monthly_goal: Optional[Decimal] = None


class Message(SQLModel):
    sender: str
    text: str
    sent_at: datetime


class Appointment(SQLModel):
    id: str = Field(default_factory=new_id)
    customer_identity: str
    customer_name: str = ""
    service_id: str
    barber_id: str
    scheduled_at: datetime
    status: AppointmentStatus = AppointmentStatus.pending
    created_at: datetime
    booked_by: BookedBy = BookedBy.client
    discount_applied: Decimal = Field(default=Decimal("0"), ge=0)
    points_redeemed: int = Field(default=0, ge=0)
    products_revenue: Decimal = Field(default=Decimal("0"), ge=0)
    # price charged, fixed when the appointment completes
    service_price: Optional[Decimal] = Field(default=None, ge=0)
    observations: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)


class LoyaltyProfile(SQLModel):
    customer_identity: str
    display_name: str = ""
    points: int = Field(default=0, ge=0)
    total_completed_appointments: int = Field(default=0, ge=0)


class ShopConfig(SQLModel):
    open_time: time
    close_time: time
    slot_interval_minutes: int = Field(gt=0)
    monthly_goal: Decimal = Field(default=Decimal("0"), ge=0)
    closed_weekdays: List[int] = Field(default_factory=list)


class StoredCollection(SQLModel, table=True):
    """One row per document collection, holding the whole list as JSON."""

    name: str = Field(primary_key=True)
    items: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
