# barbershop/events.py

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, List

from pydantic import BaseModel, Field

from .models import Appointment, AppointmentStatus, new_id

logger = logging.getLogger(__name__)


class Event(BaseModel):
    event_id: str = Field(default_factory=new_id)
    kind: str
    occurred_at: datetime = Field(default_factory=datetime.now)


class BookingCreated(Event):
    kind: str = "booking_created"
    appointment: Appointment


class StatusChanged(Event):
    kind: str = "status_changed"
    appointment: Appointment
    previous_status: AppointmentStatus


class LoyaltyMilestoneReached(Event):
    kind: str = "loyalty_milestone_reached"
    customer_identity: str
    points: int


Observer = Callable[[Event], None]


class EventDispatcher:
    """Fire-and-forget publish/subscribe channel.

    Observers run synchronously in registration order. A failing observer is
    logged and skipped; the publisher never sees its error.
    """

    def __init__(self):
        self._observers: List[Observer] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(event)
            except Exception:
                logger.exception("Observer %r failed on %s %s", observer, event.kind, event.event_id)


class EventFeed:
    """Bounded, sequence-numbered log of recent events for polling clients.

    Re-delivered events (same ``event_id``) are stored once.
    """

    def __init__(self, size: int = 200):
        self._entries = deque(maxlen=size)
        self._seen = set()
        self._seq = 0
        self._lock = threading.Lock()

    def __call__(self, event: Event) -> None:
        with self._lock:
            if event.event_id in self._seen:
                return
            if len(self._entries) == self._entries.maxlen:
                _, dropped = self._entries[0]
                self._seen.discard(dropped.event_id)
            self._seq += 1
            self._entries.append((self._seq, event))
            self._seen.add(event.event_id)

    def since(self, after: int = 0):
        with self._lock:
            return [(seq, e) for seq, e in self._entries if seq > after]

    @property
    def last_seq(self) -> int:
        return self._seq


def log_notifier(event: Event) -> None:
    # stands in for push / toast delivery
    if isinstance(event, BookingCreated):
        logger.info(
            "New booking %s for barber %s at %s",
            event.appointment.id, event.appointment.barber_id, event.appointment.scheduled_at,
        )
    elif isinstance(event, StatusChanged):
        logger.info(
            "Appointment %s moved %s -> %s",
            event.appointment.id, event.previous_status.value, event.appointment.status.value,
        )
    elif isinstance(event, LoyaltyMilestoneReached):
        logger.info("Customer %s reached %d loyalty points", event.customer_identity, event.points)
