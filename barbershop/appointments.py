# barbershop/appointments.py

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional, Union

from . import data
from .availability import AvailabilityEngine, slot_grid
from .catalog import CatalogStore
from .core import AccessScope, KeyedLocks, interval, overlaps
from .errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from .events import BookingCreated, EventDispatcher, StatusChanged
from .loyalty import LoyaltyLedger
from .models import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentStatus,
    BookedBy,
    Message,
    ShopConfig,
)
from .store import DocumentStore

logger = logging.getLogger(__name__)

TRANSITIONS = {
    AppointmentStatus.pending: {AppointmentStatus.confirmed, AppointmentStatus.cancelled},
    AppointmentStatus.confirmed: {AppointmentStatus.completed, AppointmentStatus.cancelled},
    AppointmentStatus.completed: set(),
    AppointmentStatus.cancelled: set(),
}


class AppointmentLedger:
    """Owns appointment records, the no-double-booking rule and the status machine.

    Bookings and transfers are serialised per barber, status changes per
    appointment. Loyalty side effects run inside the same critical section and
    are undone here if a later step fails.
    """

    def __init__(
        self,
        store: DocumentStore,
        catalog: CatalogStore,
        availability: AvailabilityEngine,
        loyalty: LoyaltyLedger,
        dispatcher: EventDispatcher,
        clock: Callable[[], datetime] = datetime.now,
        lock_timeout: float = 5.0,
    ):
        self.store = store
        self.catalog = catalog
        self.availability = availability
        self.loyalty = loyalty
        self.dispatcher = dispatcher
        self.clock = clock
        self.barber_locks = KeyedLocks("barber", lock_timeout)
        self.appointment_locks = KeyedLocks("appointment", lock_timeout)

    # persistence

    def _all(self) -> List[Appointment]:
        return [Appointment.model_validate(a) for a in self.store.get(data.APPOINTMENTS)]

    def _insert(self, appt: Appointment) -> None:
        with self.store.writing():
            items = self.store.get(data.APPOINTMENTS)
            items.append(appt.model_dump(mode="json"))
            self.store.put(data.APPOINTMENTS, items)

    def _replace(self, appt: Appointment) -> None:
        with self.store.writing():
            items = self.store.get(data.APPOINTMENTS)
            for i, raw in enumerate(items):
                if raw["id"] == appt.id:
                    items[i] = appt.model_dump(mode="json")
                    break
            else:
                raise NotFoundError(f"Appointment {appt.id} not found")
            self.store.put(data.APPOINTMENTS, items)

    def get(self, appointment_id: str) -> Appointment:
        for appt in self._all():
            if appt.id == appointment_id:
                return appt
        raise NotFoundError(f"Appointment {appointment_id} not found")

    # booking

    def create_appointment(
        self,
        customer_identity: str,
        service_id: str,
        barber_id: str,
        scheduled_at: datetime,
        discount_requested: bool = False,
        observations: Optional[str] = None,
        customer_name: str = "",
        by_staff: bool = False,
        config: Optional[ShopConfig] = None,
    ) -> Appointment:
        customer = (customer_identity or "").strip()
        if not customer:
            raise ValidationError("Customer identity is required")

        barber = self.catalog.get_barber(barber_id)
        if not barber.active:
            raise ValidationError("Barber is not taking appointments")
        if service_id not in barber.assigned_services:
            raise ValidationError("Barber does not offer that service")
        service = self.catalog.get_service(service_id)
        if config is None:
            config = self.catalog.config()

        with self.barber_locks.hold(barber_id):
            now = self.clock()
            day = scheduled_at.date()
            if scheduled_at not in slot_grid(day, service.duration_minutes, config, now):
                raise ValidationError("Requested time is not an available slot")

            # between listing slots and now, someone else may have taken it
            start, end = interval(scheduled_at, service.duration_minutes)
            busy = self.availability.busy_intervals(barber_id, day, self.catalog.durations())
            if any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy):
                logger.warning("Slot %s for barber %s already taken", scheduled_at, barber_id)
                raise ConflictError("Appointment overlaps an existing appointment")

            # before anything is written, so a busy customer lock leaves no trace
            self.loyalty.ensure_profile(customer, customer_name)

            points_redeemed = 0
            discount = Decimal("0")
            if discount_requested:
                self.loyalty.debit(customer, data.POINTS_TO_REDEEM)
                points_redeemed = data.POINTS_TO_REDEEM
                discount = data.DISCOUNT_VALUE

            appt = Appointment(
                customer_identity=customer,
                customer_name=customer_name,
                service_id=service_id,
                barber_id=barber_id,
                scheduled_at=scheduled_at,
                status=AppointmentStatus.confirmed if by_staff else AppointmentStatus.pending,
                created_at=now,
                booked_by=BookedBy.staff if by_staff else BookedBy.client,
                discount_applied=discount,
                points_redeemed=points_redeemed,
                observations=observations,
            )
            # fresh id, so nobody else can be holding this lock yet
            with self.appointment_locks.hold(appt.id):
                try:
                    self._insert(appt)
                except Exception:
                    if points_redeemed:
                        self.loyalty.credit(customer, points_redeemed, announce=False)
                    raise

                logger.info(
                    "Booked %s: %s with barber %s at %s (%s)",
                    appt.id, customer, barber_id, scheduled_at, appt.status.value,
                )
                self.dispatcher.publish(BookingCreated(appointment=appt))
        return appt

    # lifecycle

    def transition_status(
        self,
        appointment_id: str,
        target: Union[AppointmentStatus, str],
        products_revenue: Optional[Decimal] = None,
    ) -> Appointment:
        try:
            target = AppointmentStatus(target)
        except ValueError:
            raise ValidationError(f"Unknown status {target!r}")

        with self.appointment_locks.hold(appointment_id):
            appt = self.get(appointment_id)
            previous = appt.model_copy(deep=True)
            if target not in TRANSITIONS[appt.status]:
                raise InvalidTransitionError(
                    f"Cannot move appointment from {appt.status.value} to {target.value}"
                )

            if target == AppointmentStatus.completed:
                revenue = Decimal(str(products_revenue)) if products_revenue is not None else Decimal("0")
                if revenue < 0:
                    raise ValidationError("products_revenue must not be negative")
                appt.products_revenue = revenue
                appt.service_price = self.catalog.get_service(appt.service_id).price

            appt.status = target
            self._replace(appt)
            try:
                if target == AppointmentStatus.completed:
                    self.loyalty.credit(appt.customer_identity, data.POINTS_PER_COMPLETION, completed=True)
                elif target == AppointmentStatus.cancelled and appt.discount_applied > 0:
                    # the discount was never realised, give the points back
                    refund = appt.points_redeemed or data.POINTS_TO_REDEEM
                    self.loyalty.credit(appt.customer_identity, refund)
            except Exception:
                logger.exception("Loyalty update failed, restoring appointment %s", appointment_id)
                self._replace(previous)
                raise

            logger.info("Appointment %s: %s -> %s", appt.id, previous.status.value, target.value)
            self.dispatcher.publish(StatusChanged(appointment=appt, previous_status=previous.status))
        return appt

    def transfer_appointment(self, appointment_id: str, new_barber_id: str) -> Appointment:
        with self.appointment_locks.hold(appointment_id):
            appt = self.get(appointment_id)
            if appt.status not in ACTIVE_STATUSES:
                raise InvalidTransitionError(f"Cannot transfer a {appt.status.value} appointment")
            if appt.barber_id == new_barber_id:
                return appt

            barber = self.catalog.get_barber(new_barber_id)
            if not barber.active:
                raise ValidationError("Barber is not taking appointments")
            if appt.service_id not in barber.assigned_services:
                raise ValidationError("Barber does not offer that service")
            duration = self.catalog.get_service(appt.service_id).duration_minutes

            with self.barber_locks.hold(new_barber_id):
                start, end = interval(appt.scheduled_at, duration)
                busy = self.availability.busy_intervals(
                    new_barber_id, appt.scheduled_at.date(), self.catalog.durations()
                )
                if any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy):
                    raise ConflictError("Barber already has an appointment at that time")
                old_barber_id = appt.barber_id
                appt.barber_id = new_barber_id
                self._replace(appt)

            logger.info("Appointment %s moved from barber %s to %s", appt.id, old_barber_id, new_barber_id)
        return appt

    def append_message(self, appointment_id: str, sender: str, text: str) -> Appointment:
        if not text or not text.strip():
            raise ValidationError("Message text is required")
        with self.appointment_locks.hold(appointment_id):
            appt = self.get(appointment_id)
            appt.messages.append(Message(sender=sender, text=text, sent_at=self.clock()))
            self._replace(appt)
        return appt

    # queries

    def list_appointments(
        self,
        scope: AccessScope,
        status: str = "all",
        on_date: Optional[date] = None,
        barber: str = AccessScope.ALL,
    ) -> List[Appointment]:
        if status != "all":
            try:
                status = AppointmentStatus(status)
            except ValueError:
                raise ValidationError("status must be pending, confirmed, completed, cancelled or all")
        barber_id = scope.barber_filter(barber)

        result = []
        for appt in self._all():
            if barber_id is not None and appt.barber_id != barber_id:
                continue
            if status != "all" and appt.status != status:
                continue
            if on_date is not None and appt.scheduled_at.date() != on_date:
                continue
            result.append(appt)
        result.sort(key=lambda a: a.scheduled_at)
        return result

    def list_for_customer(self, customer_identity: str) -> List[Appointment]:
        mine = [a for a in self._all() if a.customer_identity == customer_identity]
        mine.sort(key=lambda a: a.scheduled_at, reverse=True)
        return mine
