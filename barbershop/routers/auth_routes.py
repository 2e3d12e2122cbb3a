# barbershop/routers/auth_routes.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm

from barbershop.auth import verify_password, create_access_token
from barbershop.deps import get_shop
from barbershop.errors import ValidationError
from barbershop.schemas import ClientLogin, Token

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    shop=Depends(get_shop),
):
    barber = shop.catalog.find_barber_by_username(form_data.username)

    if barber is None or not verify_password(form_data.password, barber.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not barber.active:
        raise HTTPException(status_code=403, detail="Account disabled")

    token = create_access_token({"sub": barber.id, "role": "barber"})
    return {"access_token": token, "token_type": "bearer"}


@router.post("/client", response_model=Token)
def client_login(body: ClientLogin):
    # phone numbers are validated upstream, only emptiness is checked here
    phone = body.phone.strip()
    if not phone:
        raise ValidationError("Phone is required")

    token = create_access_token({"sub": phone, "role": "client", "name": body.name.strip()})
    return {"access_token": token, "token_type": "bearer"}
