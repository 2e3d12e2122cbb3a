from datetime import date, datetime, time
from decimal import Decimal

import pytest

from barbershop import data
from barbershop.models import Appointment, AppointmentStatus, Barber, Service
from barbershop.shop import Shop
from barbershop.store import MemoryStore

# Monday
TODAY = date(2026, 10, 19)
TOMORROW = date(2026, 10, 20)
SUNDAY = date(2026, 10, 25)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def at(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, time.fromisoformat(hhmm))


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 8, 0))


@pytest.fixture
def shop(clock):
    return Shop(MemoryStore(lock_timeout=1.0), clock=clock, lock_timeout=1.0)


@pytest.fixture
def services(shop):
    haircut = shop.catalog.save_service(
        Service(id="haircut", name="Haircut", price=Decimal("20.00"), duration_minutes=30)
    )
    fade = shop.catalog.save_service(
        Service(id="fade", name="Fade", price=Decimal("25.00"), duration_minutes=30)
    )
    color = shop.catalog.save_service(
        Service(id="color", name="Colour", price=Decimal("40.00"), duration_minutes=60)
    )
    return {"haircut": haircut, "fade": fade, "color": color}


@pytest.fixture
def barbers(shop, services):
    all_ids = list(services)
    x = shop.catalog.save_barber(
        Barber(id="x", name="Xavier", username="xavier", password_hash="-", assigned_services=all_ids)
    )
    y = shop.catalog.save_barber(
        Barber(id="y", name="Yara", username="yara", password_hash="-", assigned_services=["haircut"])
    )
    boss = shop.catalog.save_barber(
        Barber(id="boss", name="Boss", username="boss", password_hash="-", is_admin=True,
               assigned_services=all_ids)
    )
    return {"x": x, "y": y, "boss": boss}


@pytest.fixture
def give_points(shop):
    def _give(customer: str, points: int):
        shop.loyalty.ensure_profile(customer, "")
        if points:
            shop.loyalty.credit(customer, points)
    return _give


@pytest.fixture
def put_appointments(shop):
    """Writes finished records straight into the store (past dates, any status)."""
    def _put(*appointments: Appointment):
        items = shop.store.get(data.APPOINTMENTS)
        items.extend(a.model_dump(mode="json") for a in appointments)
        shop.store.put(data.APPOINTMENTS, items)
    return _put


def make_appointment(barber_id="x", service_id="haircut", when=None, status=AppointmentStatus.completed, **kw):
    when = when or at(TODAY, "10:00")
    return Appointment(
        customer_identity=kw.pop("customer_identity", "+351900000001"),
        service_id=service_id,
        barber_id=barber_id,
        scheduled_at=when,
        status=status,
        created_at=when,
        **kw,
    )
