# barbershop/deps.py

import threading

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from .auth import decode_access_token
from .core import AccessScope
from .errors import NotFoundError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

_shop = None
_shop_lock = threading.Lock()


def get_shop():
    """Process-wide Shop backed by the SQL database; tests override this."""
    global _shop
    if _shop is None:
        with _shop_lock:
            if _shop is None:
                from .db import engine, init_db
                from .shop import Shop, seed_defaults
                from .store import SQLModelStore

                init_db(engine)
                shop = Shop(SQLModelStore(engine))
                seed_defaults(shop)
                _shop = shop
    return _shop


def get_current_user(
    token: str = Depends(oauth2_scheme),
    shop=Depends(get_shop),
) -> dict:
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload["role"] == "client":
        return {"id": payload["sub"], "role": "client", "name": payload.get("name", ""), "is_admin": False}

    try:
        barber = shop.catalog.get_barber(payload["sub"])
    except NotFoundError:
        raise HTTPException(
            status_code=401,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not barber.active:
        raise HTTPException(status_code=403, detail="Account disabled")

    return {"id": barber.id, "role": "barber", "name": barber.name, "is_admin": barber.is_admin}


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_admin(user: dict):
    require_role(user, "barber")
    if not user["is_admin"]:
        raise HTTPException(status_code=403, detail="Admin only")


def scope_for(user: dict) -> AccessScope:
    require_role(user, "barber")
    return AccessScope(user["id"], user["is_admin"])
