# barbershop/routers/users_routes.py

from typing import List

from fastapi import APIRouter, Depends

from barbershop.deps import get_current_user, get_shop, require_role
from barbershop.models import Appointment, LoyaltyProfile
from barbershop.schemas import UserPublic

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "role": current_user["role"],
        "name": current_user["name"],
        "is_admin": current_user["is_admin"],
    }


@router.get("/clients/me/loyalty", response_model=LoyaltyProfile)
def my_loyalty(
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    phone = current_user["id"]

    profile = shop.loyalty.find_profile(phone)
    if profile is None:
        return LoyaltyProfile(customer_identity=phone, display_name=current_user["name"])
    return profile


@router.get("/clients/me/appointments", response_model=List[Appointment])
def list_my_appointments(
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    return shop.appointments.list_for_customer(current_user["id"])
