from datetime import date, time
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.scheduling.capacity import CapacityPolicy
from agenda.scheduling.catalog import BookableService, GeneralService
from agenda.services.availability import get_available_slots, get_bookable_dates
from agenda.services.businesses import get_business, local_now
from agenda.services.catalog_store import list_offerings

router = APIRouter(tags=['availability'])


class OfferingResponse(BaseModel):
    id: int | None
    name: str
    duration_minutes: int | None
    price: Decimal
    available_days: list[int]
    start_date: date | None = None
    end_date: date | None = None
    is_general: bool
    branches_available: list[int] = []


class SlotResponse(BaseModel):
    time: time
    occupied_count: int
    remaining: int
    available: bool


class BookableDatesResponse(BaseModel):
    start: date
    end: date
    dates: list[date]


def to_offering_response(offering: BookableService) -> OfferingResponse:
    if isinstance(offering, GeneralService):
        return OfferingResponse(
            id=None,
            name=offering.name,
            duration_minutes=None,
            price=offering.price,
            available_days=list(range(7)),
            is_general=True,
        )

    return OfferingResponse(
        id=offering.id,
        name=offering.name,
        duration_minutes=offering.duration,
        price=offering.price,
        available_days=sorted(offering.available_days),
        start_date=offering.start_date,
        end_date=offering.end_date,
        is_general=False,
        branches_available=sorted(offering.branch_ids),
    )


@router.get('/{business_id}/offerings', response_model=list[OfferingResponse])
def list_business_offerings(business_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with http_errors():
        business = get_business(db, business_id)
        offerings = list_offerings(db, business_id, local_now(business).date())
        return [to_offering_response(offering) for offering in offerings]


@router.get('/{business_id}/slots', response_model=list[SlotResponse])
def list_slots(
    business_id: int,
    slot_date: date = Query(..., alias='date'),
    service_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        policy = CapacityPolicy.from_business(get_business(db, business_id))
        slots = get_available_slots(db, business_id, slot_date, service_id)
        return [
            SlotResponse(
                time=slot.time,
                occupied_count=slot.occupied_count,
                remaining=policy.remaining(slot.occupied_count),
                available=slot.available,
            )
            for slot in slots
        ]


@router.get('/{business_id}/bookable-dates', response_model=BookableDatesResponse)
def list_bookable_dates(
    business_id: int,
    start: date = Query(...),
    end: date = Query(...),
    service_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        dates = get_bookable_dates(db, business_id, start, end, service_id)
        return BookableDatesResponse(start=start, end=end, dates=dates)
