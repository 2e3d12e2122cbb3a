# barbershop/routers/barbers_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from barbershop.auth import hash_password
from barbershop.deps import get_current_user, get_shop, require_admin, require_role, scope_for
from barbershop.models import Appointment, Barber
from barbershop.schemas import (
    AvailabilityResponse,
    BarberCreate,
    BarberPublic,
    BarberUpdate,
    GoalUpdate,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.get("", response_model=List[BarberPublic])
def list_barbers(
    active_only: bool = True,
    shop=Depends(get_shop),
):
    barbers = shop.catalog.barbers()
    if active_only:
        barbers = [b for b in barbers if b.active]
    return barbers


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    body: BarberCreate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)

    assigned = body.assigned_services
    if assigned is None:
        assigned = [s.id for s in shop.catalog.services()]

    barber = Barber(
        name=body.name,
        username=body.username,
        password_hash=hash_password(body.password),
        is_admin=body.is_admin,
        assigned_services=assigned,
    )
    return shop.catalog.save_barber(barber)


@router.put("/me/goal", response_model=BarberPublic)
def update_my_goal(
    body: GoalUpdate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    barber = shop.catalog.get_barber(current_user["id"])
    barber.monthly_goal = body.monthly_goal
    return shop.catalog.save_barber(barber)


@router.put("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: str,
    body: BarberUpdate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)

    barber = shop.catalog.get_barber(barber_id)
    if body.name is not None:
        barber.name = body.name
    if body.password is not None:
        barber.password_hash = hash_password(body.password)
    if body.active is not None:
        if not body.active and barber_id == current_user["id"]:
            raise HTTPException(status_code=409, detail="Cannot deactivate yourself")
        barber.active = body.active
    if body.is_admin is not None:
        barber.is_admin = body.is_admin
    if body.assigned_services is not None:
        barber.assigned_services = body.assigned_services
    if body.monthly_goal is not None:
        barber.monthly_goal = body.monthly_goal

    return shop.catalog.save_barber(barber)


@router.get("/me/appointments", response_model=List[Appointment])
def list_barber_appointments(
    status: str = "pending",
    on_date: Optional[date] = None,
    barber: str = "all",
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    scope = scope_for(current_user)
    return shop.appointments.list_appointments(scope, status=status, on_date=on_date, barber=barber)


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: str,
    date: date,
    service_id: Optional[str] = None,
    shop=Depends(get_shop),
):
    slots = shop.available_slots(barber_id, date, service_id)
    return {
        "barber_id": barber_id,
        "date": date,
        "available_starts": [t.strftime("%H:%M") for t in slots],
    }
