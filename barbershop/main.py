# barbershop/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .errors import BookingError
from .routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    catalog_routes,
    events_routes,
    revenue_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Barbershop Booking API")


@app.exception_handler(BookingError)
def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.warning("%s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(catalog_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(revenue_routes.router)
app.include_router(events_routes.router)
