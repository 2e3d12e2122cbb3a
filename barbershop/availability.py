# barbershop/availability.py

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Iterator, Optional

from . import data
from .core import interval, overlaps
from .models import ACTIVE_STATUSES, Appointment, ShopConfig
from .store import DocumentStore

logger = logging.getLogger(__name__)

ClosedPredicate = Callable[[date], bool]


def closed_weekdays(config: ShopConfig) -> ClosedPredicate:
    days = set(config.closed_weekdays)
    return lambda day: day.weekday() in days


def slot_grid(
    day: date,
    duration_minutes: int,
    config: ShopConfig,
    now: datetime,
    is_closed: Optional[ClosedPredicate] = None,
) -> Iterator[datetime]:
    """Candidate start times for ``day`` before looking at any bookings.

    Steps from open_time by the slot interval. A trailing partial interval is
    dropped, the service has to finish by close_time, and on today (or
    earlier) a slot must start strictly after now plus the advance window.
    """
    if is_closed is None:
        is_closed = closed_weekdays(config)
    if is_closed(day):
        return

    work_start = datetime.combine(day, config.open_time)
    work_end = datetime.combine(day, config.close_time)
    step = timedelta(minutes=config.slot_interval_minutes)
    service = timedelta(minutes=duration_minutes)
    earliest = now + timedelta(minutes=data.MIN_ADVANCE_MINUTES)

    current = work_start
    while current + step <= work_end:
        if current + service > work_end:
            break
        if day > now.date() or current > earliest:
            yield current
        current += step


class SlotSequence:
    """Lazy, restartable view over a barber's free slots.

    Each iteration re-runs the computation against the snapshot taken when
    the sequence was built.
    """

    def __init__(self, day, duration_minutes, config, now, busy, is_closed=None):
        self.day = day
        self.duration_minutes = duration_minutes
        self.config = config
        self.now = now
        self.busy = busy
        self.is_closed = is_closed

    def __iter__(self) -> Iterator[time]:
        for start in slot_grid(self.day, self.duration_minutes, self.config, self.now, self.is_closed):
            start, end = interval(start, self.duration_minutes)
            if any(overlaps(start, end, b_start, b_end) for b_start, b_end in self.busy):
                continue
            yield start.time()

    def __contains__(self, value) -> bool:
        return any(t == value for t in self)


class AvailabilityEngine:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def busy_intervals(
        self,
        barber_id: str,
        day: date,
        durations: Dict[str, int],
    ):
        """Intervals held by the barber's pending/confirmed appointments on ``day``."""
        busy = []
        for raw in self.store.get(data.APPOINTMENTS):
            a = Appointment.model_validate(raw)
            if a.barber_id != barber_id:
                continue
            if a.status not in ACTIVE_STATUSES:
                continue
            if a.scheduled_at.date() != day:
                continue
            if a.service_id not in durations:
                logger.warning("Appointment %s references unknown service %s", a.id, a.service_id)
                continue
            busy.append(interval(a.scheduled_at, durations[a.service_id]))
        return busy

    def available_slots(
        self,
        barber_id: str,
        day: date,
        service_duration: int,
        config: ShopConfig,
        durations: Dict[str, int],
        is_closed: Optional[ClosedPredicate] = None,
    ) -> SlotSequence:
        busy = self.busy_intervals(barber_id, day, durations)
        return SlotSequence(day, service_duration, config, self.clock(), busy, is_closed)
