# barbershop/shop.py

import logging
from datetime import datetime
from typing import Callable, Optional

from . import config, data
from .appointments import AppointmentLedger
from .auth import hash_password
from .availability import AvailabilityEngine
from .catalog import CatalogStore
from .events import EventDispatcher, EventFeed, log_notifier
from .loyalty import LoyaltyLedger
from .models import Barber, Service
from .revenue import RevenueAggregator
from .store import DocumentStore

logger = logging.getLogger(__name__)


class Shop:
    """Wires the booking components around one document store."""

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = datetime.now,
        lock_timeout: float = config.LOCK_TIMEOUT_SECONDS,
        feed_size: int = config.EVENT_FEED_SIZE,
    ):
        self.store = store
        self.clock = clock
        self.dispatcher = EventDispatcher()
        self.feed = EventFeed(feed_size)
        self.dispatcher.subscribe(self.feed)
        self.dispatcher.subscribe(log_notifier)

        self.catalog = CatalogStore(store)
        self.availability = AvailabilityEngine(store, clock)
        self.loyalty = LoyaltyLedger(store, self.dispatcher, data.POINTS_TO_REDEEM, lock_timeout)
        self.appointments = AppointmentLedger(
            store,
            self.catalog,
            self.availability,
            self.loyalty,
            self.dispatcher,
            clock=clock,
            lock_timeout=lock_timeout,
        )
        self.revenue = RevenueAggregator(store, self.catalog, clock)

    def available_slots(self, barber_id: str, day, service_id: Optional[str] = None):
        barber = self.catalog.get_barber(barber_id)
        shop_config = self.catalog.config()
        if not barber.active:
            return []
        if service_id is None:
            duration = shop_config.slot_interval_minutes
        else:
            if service_id not in barber.assigned_services:
                return []
            duration = self.catalog.get_service(service_id).duration_minutes
        return self.availability.available_slots(
            barber_id, day, duration, shop_config, self.catalog.durations()
        )


def seed_defaults(shop: Shop, admin_username: str = config.ADMIN_USERNAME, admin_password: str = config.ADMIN_PASSWORD) -> None:
    """Default catalog and a first admin barber for an empty store."""
    if not shop.catalog.services():
        for name, (price, minutes) in data.DEFAULT_SERVICES.items():
            shop.catalog.save_service(Service(name=name, price=price, duration_minutes=minutes))
        logger.info("Seeded %d default services", len(data.DEFAULT_SERVICES))

    if not shop.catalog.barbers():
        admin = Barber(
            name="Admin",
            username=admin_username,
            password_hash=hash_password(admin_password),
            is_admin=True,
            assigned_services=[s.id for s in shop.catalog.services()],
        )
        shop.catalog.save_barber(admin)
        logger.info("Seeded admin barber %s", admin_username)
