# barbershop/routers/catalog_routes.py

from typing import List

from fastapi import APIRouter, Depends

from barbershop.deps import get_current_user, get_shop, require_admin
from barbershop.models import Service, ShopConfig
from barbershop.schemas import ConfigIn, ServiceIn

router = APIRouter(
    tags=["catalog"],
)


@router.get("/services", response_model=List[Service])
def list_services(shop=Depends(get_shop)):
    return shop.catalog.services()


@router.post("/services", response_model=Service, status_code=201)
def create_service(
    body: ServiceIn,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)
    return shop.catalog.save_service(Service(**body.model_dump()))


@router.put("/services/{service_id}", response_model=Service)
def update_service(
    service_id: str,
    body: ServiceIn,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)
    shop.catalog.get_service(service_id)
    return shop.catalog.save_service(Service(id=service_id, **body.model_dump()))


@router.delete("/services/{service_id}", status_code=204)
def delete_service(
    service_id: str,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)
    shop.catalog.delete_service(service_id)


@router.get("/config", response_model=ShopConfig)
def get_config(shop=Depends(get_shop)):
    return shop.catalog.config()


@router.put("/config", response_model=ShopConfig)
def update_config(
    body: ConfigIn,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    require_admin(current_user)
    return shop.catalog.save_config(ShopConfig(**body.model_dump()))
