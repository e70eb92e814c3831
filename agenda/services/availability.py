from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from agenda.core.errors import ConfigurationError
from agenda.scheduling.capacity import CapacityPolicy
from agenda.scheduling.slots import Slot, generate_slots, offered_times
from agenda.scheduling.weekly import DayHours
from agenda.services.businesses import get_business, local_now
from agenda.services.catalog_store import resolve_offering
from agenda.services.days_off_store import day_off_dates
from agenda.services.ledger import occupancy_by_time
from agenda.services.schedule_store import get_day_hours, get_saved_week

MAX_BOOKABLE_DATES_SPAN_DAYS = 92


def get_available_slots(
    db: Session,
    business_id: int,
    target_date: date,
    service_id: int | None = None,
    now: datetime | None = None,
) -> list[Slot]:
    """Slots for one date, each with its occupancy and availability.

    The result is advisory: a slot shown as available can still be lost
    to another client before ``reserve`` commits.
    """
    business = get_business(db, business_id)
    now = now or local_now(business)

    if business.temporarily_closed:
        return []

    service = resolve_offering(db, business_id, service_id, now.date())
    day = get_day_hours(db, business_id, target_date.weekday())
    days_off = day_off_dates(db, business_id, target_date, target_date)

    counts = occupancy_by_time(db, business_id, target_date)

    return generate_slots(
        day=day,
        days_off=days_off,
        service=service,
        target_date=target_date,
        now=now,
        occupancy=lambda _date, slot_time: counts.get(slot_time, 0),
        policy=CapacityPolicy.from_business(business),
    )


def get_bookable_dates(
    db: Session,
    business_id: int,
    start: date,
    end: date,
    service_id: int | None = None,
    now: datetime | None = None,
) -> list[date]:
    """Dates in [start, end] with at least one start time left for the chosen service.

    Capacity is not considered: a bookable date may turn out to be full.
    Today is listed only while some of its slots are still ahead of "now".
    """
    if end < start:
        raise ConfigurationError('The end date must be on or after the start date.')
    if (end - start).days > MAX_BOOKABLE_DATES_SPAN_DAYS:
        raise ConfigurationError(f'At most {MAX_BOOKABLE_DATES_SPAN_DAYS} days can be requested at once.')

    business = get_business(db, business_id)
    now = now or local_now(business)

    if business.temporarily_closed:
        return []

    service = resolve_offering(db, business_id, service_id, now.date())
    week = get_saved_week(db, business_id)
    days_off = day_off_dates(db, business_id, start, end)

    bookable: list[date] = []
    current = max(start, now.date())
    while current <= end:
        day = week.get(current.weekday()) or DayHours.closed(current.weekday())
        if offered_times(day, days_off, service, current, now):
            bookable.append(current)
        current += timedelta(days=1)

    return bookable
