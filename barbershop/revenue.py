# barbershop/revenue.py

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from . import data
from .catalog import CatalogStore
from .core import AccessScope
from .errors import ValidationError
from .models import Appointment, AppointmentStatus, ShopConfig
from .store import DocumentStore

logger = logging.getLogger(__name__)

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class WindowKind(str, Enum):
    recent_days = "recent_days"
    annual = "annual"


class RevenueWindow(BaseModel):
    kind: WindowKind
    start: date
    end: date  # inclusive

    @classmethod
    def recent_days(cls, today: date, days: int = data.RECENT_DAYS) -> "RevenueWindow":
        if days < 1:
            raise ValidationError("days must be at least 1")
        return cls(kind=WindowKind.recent_days, start=today - timedelta(days=days - 1), end=today)

    @classmethod
    def annual(cls, year: int) -> "RevenueWindow":
        return cls(kind=WindowKind.annual, start=date(year, 1, 1), end=date(year, 12, 31))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def bucket_key(self, day: date) -> str:
        if self.kind == WindowKind.annual:
            return f"{day.year:04d}-{day.month:02d}"
        return day.isoformat()


class RevenueBucket(BaseModel):
    key: str
    label: str
    value: Decimal = Decimal("0")


class RevenueReport(BaseModel):
    window: RevenueWindow
    barber_id: Optional[str] = None
    total: Decimal = Decimal("0")
    buckets: List[RevenueBucket]


class RevenueSummary(BaseModel):
    barber_id: Optional[str] = None
    today: Decimal
    month_to_date: Decimal
    products_month_to_date: Decimal
    monthly_goal: Decimal
    goal_progress: Optional[Decimal] = None


def appointment_revenue(appt: Appointment, prices: Dict[str, Decimal]) -> Decimal:
    price = appt.service_price
    if price is None:
        price = prices.get(appt.service_id, Decimal("0"))
    return price - appt.discount_applied + appt.products_revenue


def empty_buckets(window: RevenueWindow) -> List[RevenueBucket]:
    if window.kind == WindowKind.annual:
        return [
            RevenueBucket(key=f"{window.start.year:04d}-{m:02d}", label=MONTH_LABELS[m - 1])
            for m in range(1, 13)
        ]
    buckets = []
    day = window.start
    while day <= window.end:
        buckets.append(RevenueBucket(key=day.isoformat(), label=day.strftime("%d/%m")))
        day += timedelta(days=1)
    return buckets


def completed_in(appointments: Iterable[Appointment], barber_id: Optional[str]):
    for appt in appointments:
        if appt.status != AppointmentStatus.completed:
            continue
        if barber_id is not None and appt.barber_id != barber_id:
            continue
        yield appt


def build_report(
    appointments: Iterable[Appointment],
    prices: Dict[str, Decimal],
    window: RevenueWindow,
    barber_id: Optional[str] = None,
) -> RevenueReport:
    """Buckets completed revenue by the day the appointment was scheduled for."""
    buckets = empty_buckets(window)
    by_key = {b.key: b for b in buckets}
    total = Decimal("0")
    for appt in completed_in(appointments, barber_id):
        day = appt.scheduled_at.date()
        if not window.contains(day):
            continue
        amount = appointment_revenue(appt, prices)
        by_key[window.bucket_key(day)].value += amount
        total += amount
    return RevenueReport(window=window, barber_id=barber_id, total=total, buckets=buckets)


class RevenueAggregator:
    """Read-only projection over a snapshot of appointments and services."""

    def __init__(self, store: DocumentStore, catalog: CatalogStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.catalog = catalog
        self.clock = clock

    def _snapshot(self):
        appointments = [Appointment.model_validate(a) for a in self.store.get(data.APPOINTMENTS)]
        prices = {s.id: s.price for s in self.catalog.services()}
        return appointments, prices

    def aggregate(
        self,
        window: RevenueWindow,
        scope: AccessScope,
        barber_filter: str = AccessScope.ALL,
    ) -> RevenueReport:
        barber_id = scope.barber_filter(barber_filter)
        appointments, prices = self._snapshot()
        return build_report(appointments, prices, window, barber_id)

    def summary(
        self,
        scope: AccessScope,
        config: ShopConfig,
        barber_filter: str = AccessScope.ALL,
    ) -> RevenueSummary:
        barber_id = scope.barber_filter(barber_filter)
        appointments, prices = self._snapshot()
        today = self.clock().date()
        month_start = today.replace(day=1)

        day_total = Decimal("0")
        month_total = Decimal("0")
        products = Decimal("0")
        for appt in completed_in(appointments, barber_id):
            day = appt.scheduled_at.date()
            amount = appointment_revenue(appt, prices)
            if day == today:
                day_total += amount
            if month_start <= day <= today:
                month_total += amount
                products += appt.products_revenue

        goal = self.catalog.monthly_goal_for(barber_id, config)
        progress = (month_total / goal).quantize(Decimal("0.0001")) if goal > 0 else None
        return RevenueSummary(
            barber_id=barber_id,
            today=day_total,
            month_to_date=month_total,
            products_month_to_date=products,
            monthly_goal=goal,
            goal_progress=progress,
        )
