import threading
import time
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from barbershop import db, deps, shop as shop_module
from barbershop.core import KeyedLocks
from barbershop.errors import ConflictError, InvalidTransitionError, LockTimeoutError, NotFoundError
from barbershop.models import AppointmentStatus
from barbershop.shop import Shop

from conftest import TOMORROW, at


def run_together(*calls):
    """Starts every call at the same moment and collects result or exception."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(i, fn):
        barrier.wait()
        try:
            results[i] = fn()
        except Exception as exc:
            results[i] = exc

    threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results


def test_same_slot_race_has_one_winner(shop, barbers):
    def booking(phone):
        return lambda: shop.appointments.create_appointment(phone, "haircut", "x", at(TOMORROW, "10:00"))

    results = run_together(booking("+351966666661"), booking("+351966666662"))

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], ConflictError)
    assert len(shop.appointments._all()) == 1


def test_many_clients_racing_for_the_morning(shop, barbers):
    calls = []
    for i in range(8):
        hhmm = ["09:00", "09:30", "10:00"][i % 3]
        phone = f"+35197000000{i}"
        calls.append(lambda h=hhmm, p=phone: shop.appointments.create_appointment(p, "haircut", "x", at(TOMORROW, h)))

    results = run_together(*calls)

    booked = sorted(r.scheduled_at for r in results if not isinstance(r, Exception))
    assert booked == [at(TOMORROW, "09:00"), at(TOMORROW, "09:30"), at(TOMORROW, "10:00")]
    assert all(isinstance(r, ConflictError) for r in results if isinstance(r, Exception))


def test_racing_completions_credit_once(shop, barbers):
    appt = shop.appointments.create_appointment("+351977777777", "haircut", "x", at(TOMORROW, "10:00"), by_staff=True)

    def complete():
        return shop.appointments.transition_status(appt.id, AppointmentStatus.completed, Decimal("3"))

    results = run_together(complete, complete, complete)

    assert sum(not isinstance(r, Exception) for r in results) == 1
    assert all(isinstance(r, InvalidTransitionError) for r in results if isinstance(r, Exception))
    profile = shop.loyalty.find_profile("+351977777777")
    assert profile.points == 1
    assert profile.total_completed_appointments == 1


def test_bookings_for_different_barbers_do_not_lose_writes(shop, barbers):
    calls = [
        lambda: shop.appointments.create_appointment("+351980000001", "haircut", "x", at(TOMORROW, "11:00")),
        lambda: shop.appointments.create_appointment("+351980000002", "haircut", "y", at(TOMORROW, "11:00")),
        lambda: shop.appointments.create_appointment("+351980000003", "haircut", "boss", at(TOMORROW, "11:00")),
    ]

    results = run_together(*calls)

    assert not any(isinstance(r, Exception) for r in results)
    assert len(shop.appointments._all()) == 3


def test_busy_barber_lock_times_out(clock, barbers, shop):
    impatient = Shop(shop.store, clock=clock, lock_timeout=0.05)

    with impatient.appointments.barber_locks.hold("x"):
        with pytest.raises(LockTimeoutError):
            impatient.appointments.create_appointment("+351990000000", "haircut", "x", at(TOMORROW, "10:00"))

    assert impatient.appointments._all() == []


def test_busy_customer_lock_leaves_no_booking_behind(clock, barbers, shop):
    impatient = Shop(shop.store, clock=clock, lock_timeout=0.05)
    seen = []
    impatient.dispatcher.subscribe(seen.append)

    with impatient.loyalty.locks.hold("+351990000001"):
        with pytest.raises(LockTimeoutError):
            impatient.appointments.create_appointment("+351990000001", "haircut", "x", at(TOMORROW, "10:00"))

    assert impatient.appointments._all() == []
    assert seen == []

    # the retry finds the slot still free
    appt = impatient.appointments.create_appointment("+351990000001", "haircut", "x", at(TOMORROW, "10:00"))
    assert [e.kind for e in seen] == ["booking_created"]
    assert [a.id for a in impatient.appointments._all()] == [appt.id]


def test_transfer_races_booking_for_same_chair(shop, barbers):
    moving = shop.appointments.create_appointment("+351981000001", "haircut", "x", at(TOMORROW, "10:00"))

    results = run_together(
        lambda: shop.appointments.transfer_appointment(moving.id, "y"),
        lambda: shop.appointments.create_appointment("+351981000002", "haircut", "y", at(TOMORROW, "10:00")),
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], ConflictError)
    on_y = [a for a in shop.appointments._all() if a.barber_id == "y"]
    assert len(on_y) == 1


def test_first_requests_share_one_shop(monkeypatch):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(deps, "_shop", None)

    real_seed = shop_module.seed_defaults
    seeded = []

    def slow_seed(target, *args, **kwargs):
        seeded.append(target)
        time.sleep(0.2)
        real_seed(target, *args, **kwargs)

    monkeypatch.setattr(shop_module, "seed_defaults", slow_seed)

    results = run_together(deps.get_shop, deps.get_shop, deps.get_shop)

    assert not any(isinstance(r, Exception) for r in results)
    assert results[0] is results[1] is results[2]
    assert len(seeded) == 1
    assert len(results[0].catalog.barbers()) == 1


def test_idle_keys_are_forgotten(shop, barbers):
    locks = KeyedLocks("customer", timeout=0.01)

    with locks.hold("a"):
        with pytest.raises(LockTimeoutError):
            with locks.hold("a"):
                pass
        assert locks.active_keys() == 1
    assert locks.active_keys() == 0

    appt = shop.appointments.create_appointment("+351982000001", "haircut", "x", at(TOMORROW, "10:00"))
    shop.appointments.transition_status(appt.id, "confirmed")
    with pytest.raises(NotFoundError):
        shop.appointments.transition_status("no-such-id", "confirmed")

    assert shop.appointments.barber_locks.active_keys() == 0
    assert shop.appointments.appointment_locks.active_keys() == 0
    assert shop.loyalty.locks.active_keys() == 0
