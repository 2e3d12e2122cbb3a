# barbershop/routers/events_routes.py

from fastapi import APIRouter, Depends

from barbershop.deps import get_current_user, get_shop
from barbershop.events import BookingCreated, LoyaltyMilestoneReached, StatusChanged
from barbershop.schemas import EventFeedResponse

router = APIRouter(
    prefix="/events",
    tags=["events"],
)

HEADER_FIELDS = {"event_id", "kind", "occurred_at"}


def _visible(event, current_user: dict) -> bool:
    if isinstance(event, (BookingCreated, StatusChanged)):
        appt = event.appointment
        if current_user["role"] == "client":
            return appt.customer_identity == current_user["id"]
        return current_user["is_admin"] or appt.barber_id == current_user["id"]
    if isinstance(event, LoyaltyMilestoneReached):
        return current_user["role"] == "client" and event.customer_identity == current_user["id"]
    return False


@router.get("", response_model=EventFeedResponse)
def poll_events(
    after: int = 0,
    limit: int = 100,
    shop=Depends(get_shop),
    current_user: dict = Depends(get_current_user),
):
    events = []
    for seq, event in shop.feed.since(after):
        if not _visible(event, current_user):
            continue
        events.append({
            "seq": seq,
            "event_id": event.event_id,
            "kind": event.kind,
            "occurred_at": event.occurred_at,
            "payload": event.model_dump(mode="json", exclude=HEADER_FIELDS),
        })
        if len(events) >= limit:
            break

    return {"last_seq": shop.feed.last_seq, "events": events}
