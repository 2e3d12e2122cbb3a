# barbershop/schemas.py

from pydantic import BaseModel, Field
from datetime import datetime, date, time
from decimal import Decimal
from typing import List, Optional

from .models import AppointmentStatus


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ClientLogin(BaseModel):
    phone: str = Field(min_length=1)
    name: str = ""


class UserPublic(BaseModel):
    id: str
    role: str
    name: str
    is_admin: bool = False


class ServiceIn(BaseModel):
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    duration_minutes: int = Field(gt=0)
    description: Optional[str] = None


class BarberCreate(BaseModel):
    name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=72)
    is_admin: bool = False
    assigned_services: Optional[List[str]] = None  # None = every service


class BarberUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)
    active: Optional[bool] = None
    is_admin: Optional[bool] = None
    assigned_services: Optional[List[str]] = None
    monthly_goal: Optional[Decimal] = Field(default=None, ge=0)


class BarberPublic(BaseModel):
    id: str
    name: str
    username: str
    active: bool
    is_admin: bool
    assigned_services: List[str]
    monthly_goal: Optional[Decimal] = None


class GoalUpdate(BaseModel):
    monthly_goal: Decimal = Field(ge=0)


class ConfigIn(BaseModel):
    open_time: time
    close_time: time
    slot_interval_minutes: int = Field(gt=0)
    monthly_goal: Decimal = Field(ge=0)
    closed_weekdays: List[int] = []


class AppointmentCreate(BaseModel):
    service_id: str
    barber_id: str
    scheduled_at: datetime
    use_loyalty_points: bool = False
    observations: Optional[str] = None


class WalkInCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_phone: str = "000000000"
    service_id: str
    barber_id: Optional[str] = None  # defaults to the logged-in barber
    scheduled_at: datetime
    observations: Optional[str] = None


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    products_revenue: Optional[Decimal] = None


class TransferRequest(BaseModel):
    barber_id: str


class MessageIn(BaseModel):
    text: str = Field(min_length=1)


class AvailabilityResponse(BaseModel):
    barber_id: str
    date: date
    available_starts: List[str]


class EventOut(BaseModel):
    seq: int
    event_id: str
    kind: str
    occurred_at: datetime
    payload: dict


class EventFeedResponse(BaseModel):
    last_seq: int
    events: List[EventOut]
