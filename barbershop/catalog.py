# barbershop/catalog.py

import logging
from datetime import time
from typing import List, Optional

from . import data
from .errors import NotFoundError, ValidationError
from .models import ACTIVE_STATUSES, Appointment, Barber, Service, ShopConfig
from .store import DocumentStore

logger = logging.getLogger(__name__)


def default_config() -> ShopConfig:
    settings = data.shop_settings
    return ShopConfig(
        open_time=time.fromisoformat(settings["open_time"]),
        close_time=time.fromisoformat(settings["close_time"]),
        slot_interval_minutes=settings["slot_interval_minutes"],
        monthly_goal=settings["monthly_goal"],
        closed_weekdays=list(settings["closed_weekdays"]),
    )


class CatalogStore:
    """Services, barbers and the shop config. Read-mostly, written by admins."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # services

    def services(self) -> List[Service]:
        return [Service.model_validate(s) for s in self.store.get(data.SERVICES)]

    def get_service(self, service_id: str) -> Service:
        for s in self.services():
            if s.id == service_id:
                return s
        raise NotFoundError(f"Service {service_id} not found")

    def durations(self) -> dict:
        return {s.id: s.duration_minutes for s in self.services()}

    def save_service(self, service: Service) -> Service:
        with self.store.writing():
            items = self.store.get(data.SERVICES)
            items = [s for s in items if s["id"] != service.id]
            items.append(service.model_dump(mode="json"))
            self.store.put(data.SERVICES, items)
        logger.info("Saved service %s (%s)", service.id, service.name)
        return service

    def delete_service(self, service_id: str) -> None:
        with self.store.writing():
            self.get_service(service_id)
            for raw in self.store.get(data.APPOINTMENTS):
                appt = Appointment.model_validate(raw)
                if appt.service_id == service_id and appt.status in ACTIVE_STATUSES:
                    raise ValidationError("Service is referenced by an open appointment")
            items = [s for s in self.store.get(data.SERVICES) if s["id"] != service_id]
            self.store.put(data.SERVICES, items)

            # barbers no longer offer it
            barbers = self.store.get(data.BARBERS)
            for b in barbers:
                b["assigned_services"] = [sid for sid in b["assigned_services"] if sid != service_id]
            self.store.put(data.BARBERS, barbers)
        logger.info("Deleted service %s", service_id)

    # barbers

    def barbers(self) -> List[Barber]:
        return [Barber.model_validate(b) for b in self.store.get(data.BARBERS)]

    def get_barber(self, barber_id: str) -> Barber:
        for b in self.barbers():
            if b.id == barber_id:
                return b
        raise NotFoundError(f"Barber {barber_id} not found")

    def find_barber_by_username(self, username: str) -> Optional[Barber]:
        for b in self.barbers():
            if b.username == username:
                return b
        return None

    def save_barber(self, barber: Barber) -> Barber:
        known = {s.id for s in self.services()}
        unknown = [sid for sid in barber.assigned_services if sid not in known]
        if unknown:
            raise ValidationError(f"Unknown services: {', '.join(unknown)}")
        with self.store.writing():
            items = self.store.get(data.BARBERS)
            for b in items:
                if b["username"] == barber.username and b["id"] != barber.id:
                    raise ValidationError("Username already taken")
            items = [b for b in items if b["id"] != barber.id]
            items.append(barber.model_dump(mode="json"))
            self.store.put(data.BARBERS, items)
        logger.info("Saved barber %s (%s)", barber.id, barber.username)
        return barber

    # config

    def config(self) -> ShopConfig:
        items = self.store.get(data.CONFIG)
        if not items:
            return default_config()
        return ShopConfig.model_validate(items[0])

    def save_config(self, config: ShopConfig) -> ShopConfig:
        if config.open_time >= config.close_time:
            raise ValidationError("open_time must be before close_time")
        if any(d < 0 or d > 6 for d in config.closed_weekdays):
            raise ValidationError("closed_weekdays must be integers between 0 and 6")
        with self.store.writing():
            self.store.put(data.CONFIG, [config.model_dump(mode="json")])
        logger.info("Shop config updated")
        return config

    def monthly_goal_for(self, barber_id: Optional[str], config: ShopConfig):
        if barber_id is not None:
            barber = self.get_barber(barber_id)
            if barber.monthly_goal is not None:
                return barber.monthly_goal
        return config.monthly_goal
