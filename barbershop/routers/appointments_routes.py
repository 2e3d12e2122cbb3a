# barbershop/routers/appointments_routes.py

from fastapi import APIRouter, Depends, HTTPException

from barbershop.deps import get_current_user, get_shop, require_role
from barbershop.models import Appointment, AppointmentStatus
from barbershop.schemas import (
    AppointmentCreate,
    MessageIn,
    StatusUpdate,
    TransferRequest,
    WalkInCreate,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _load_visible(shop, appt_id: str, current_user: dict) -> Appointment:
    target = shop.appointments.get(appt_id)

    # client who booked, the assigned barber, or an admin
    if current_user["role"] == "client":
        if target.customer_identity != current_user["id"]:
            raise HTTPException(status_code=403, detail="Forbidden")
    elif not current_user["is_admin"] and target.barber_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return target


@router.post("", response_model=Appointment, status_code=201)
def client_create_appointment(
    appt: AppointmentCreate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    return shop.appointments.create_appointment(
        customer_identity=current_user["id"],
        service_id=appt.service_id,
        barber_id=appt.barber_id,
        scheduled_at=appt.scheduled_at,
        discount_requested=appt.use_loyalty_points,
        observations=appt.observations,
        customer_name=current_user["name"],
    )


@router.post("/walk-in", response_model=Appointment, status_code=201)
def staff_create_appointment(
    appt: WalkInCreate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    barber_id = appt.barber_id or current_user["id"]
    if barber_id != current_user["id"] and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Only admins can book for other barbers")

    return shop.appointments.create_appointment(
        customer_identity=appt.customer_phone,
        service_id=appt.service_id,
        barber_id=barber_id,
        scheduled_at=appt.scheduled_at,
        observations=appt.observations,
        customer_name=appt.customer_name,
        by_staff=True,
    )


@router.get("/{appt_id}", response_model=Appointment)
def get_appointment(
    appt_id: str,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    return _load_visible(shop, appt_id, current_user)


@router.patch("/{appt_id}/status", response_model=Appointment)
def update_status(
    appt_id: str,
    body: StatusUpdate,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    _load_visible(shop, appt_id, current_user)

    # clients may only call off their own booking
    if current_user["role"] == "client" and body.status != AppointmentStatus.cancelled:
        raise HTTPException(status_code=403, detail="Forbidden")

    return shop.appointments.transition_status(appt_id, body.status, body.products_revenue)


@router.patch("/{appt_id}/barber", response_model=Appointment)
def transfer_appointment(
    appt_id: str,
    body: TransferRequest,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    _load_visible(shop, appt_id, current_user)

    return shop.appointments.transfer_appointment(appt_id, body.barber_id)


@router.post("/{appt_id}/messages", response_model=Appointment, status_code=201)
def post_message(
    appt_id: str,
    body: MessageIn,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    _load_visible(shop, appt_id, current_user)

    sender = current_user["name"] or current_user["id"]
    return shop.appointments.append_message(appt_id, sender, body.text)
