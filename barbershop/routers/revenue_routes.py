# barbershop/routers/revenue_routes.py

from typing import Optional

from fastapi import APIRouter, Depends

from barbershop import data
from barbershop.deps import get_current_user, get_shop, scope_for
from barbershop.revenue import RevenueReport, RevenueSummary, RevenueWindow, WindowKind

router = APIRouter(
    prefix="/revenue",
    tags=["revenue"],
)


@router.get("", response_model=RevenueReport)
def revenue(
    window: WindowKind = WindowKind.recent_days,
    days: int = data.RECENT_DAYS,
    year: Optional[int] = None,
    barber: str = "all",
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    scope = scope_for(current_user)
    today = shop.clock().date()

    if window == WindowKind.annual:
        period = RevenueWindow.annual(year or today.year)
    else:
        period = RevenueWindow.recent_days(today, days)
    return shop.revenue.aggregate(period, scope, barber)


@router.get("/summary", response_model=RevenueSummary)
def revenue_summary(
    barber: str = "all",
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    scope = scope_for(current_user)
    return shop.revenue.summary(scope, shop.catalog.config(), barber)
