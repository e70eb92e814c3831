from dataclasses import asdict
from datetime import date, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.scheduling.days_off import DayOffRange
from agenda.scheduling.weekly import DEFAULT_SLOT_DURATION_MINUTES, DayHours
from agenda.services.businesses import get_business, require_owner
from agenda.services.days_off_store import (
    add_day_off,
    add_day_off_range,
    delete_day_off,
    delete_day_off_group,
    list_day_off_ranges,
    list_days_off,
)
from agenda.services.schedule_store import get_published_week, get_saved_week, get_week, replace_week

router = APIRouter(tags=['schedule'])

MAX_REASON_LENGTH = 200


class DayHoursPayload(BaseModel):
    day: int
    enabled: bool
    is_continuous: bool = True
    start_time: time | None = None
    end_time: time | None = None
    morning_start: time | None = None
    morning_end: time | None = None
    afternoon_start: time | None = None
    afternoon_end: time | None = None
    slot_duration: int = DEFAULT_SLOT_DURATION_MINUTES

    class Config:
        from_attributes = True

    def to_day_hours(self) -> DayHours:
        return DayHours(**self.model_dump())


class DayScheduleResponse(DayHoursPayload):
    saved: bool


def to_schedule_response(day_hours: DayHours, saved: bool) -> DayScheduleResponse:
    return DayScheduleResponse(**asdict(day_hours), saved=saved)


class ReplaceWeekRequest(BaseModel):
    days: list[DayHoursPayload]


def _normalize_reason(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > MAX_REASON_LENGTH:
        raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')
    return normalized or None


class CreateDayOffRequest(BaseModel):
    date: date
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)


class CreateDayOffRangeRequest(BaseModel):
    start_date: date
    end_date: date
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)


class DayOffResponse(BaseModel):
    id: int
    date: date
    reason: str | None = None

    class Config:
        from_attributes = True


class DayOffRangeResponse(BaseModel):
    start_date: date
    end_date: date
    reason: str | None = None
    days: int
    is_range: bool
    day_off_ids: list[int]


def to_range_response(group: DayOffRange) -> DayOffRangeResponse:
    return DayOffRangeResponse(
        start_date=group.start,
        end_date=group.end,
        reason=group.reason,
        days=len(group.dates),
        is_range=group.is_range,
        day_off_ids=list(group.day_off_ids),
    )


def _check_owner(db: Session, business_id: int, owner_email: str) -> None:
    require_owner(get_business(db, business_id), owner_email)


@router.get('/{business_id}/schedule', response_model=list[DayScheduleResponse])
def get_weekly_schedule(business_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with http_errors():
        get_business(db, business_id)
        return [to_schedule_response(day_hours, saved) for day_hours, saved in get_published_week(db, business_id)]


@router.get('/{business_id}/schedule/editor', response_model=list[DayScheduleResponse])
def get_schedule_editor(
    business_id: int,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    """The owner's working copy: unsaved days come pre-filled with the default hours."""
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        saved_days = set(get_saved_week(db, business_id))
        return [to_schedule_response(day_hours, day_hours.day in saved_days) for day_hours in get_week(db, business_id)]


@router.put('/{business_id}/schedule', response_model=list[DayScheduleResponse])
def update_weekly_schedule(
    business_id: int,
    data: ReplaceWeekRequest,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        week = replace_week(db, business_id, [payload.to_day_hours() for payload in data.days])
        return [to_schedule_response(day_hours, True) for day_hours in week]


@router.get('/{business_id}/days-off', response_model=list[DayOffResponse])
def list_business_days_off(
    business_id: int,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        get_business(db, business_id)
        return list_days_off(db, business_id, start=start, end=end)


@router.get('/{business_id}/days-off/ranges', response_model=list[DayOffRangeResponse])
def list_business_day_off_ranges(
    business_id: int,
    start: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        get_business(db, business_id)
        return [to_range_response(group) for group in list_day_off_ranges(db, business_id, start=start)]


@router.post('/{business_id}/days-off', response_model=DayOffResponse, status_code=status.HTTP_201_CREATED)
def create_day_off(
    business_id: int,
    data: CreateDayOffRequest,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return add_day_off(db, business_id, data.date, data.reason)


@router.post(
    '/{business_id}/days-off/range',
    response_model=list[DayOffResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_day_off_range(
    business_id: int,
    data: CreateDayOffRangeRequest,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return add_day_off_range(db, business_id, data.start_date, data.end_date, data.reason)


@router.delete('/{business_id}/days-off/{day_off_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_day_off(
    business_id: int,
    day_off_id: int,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        delete_day_off(db, business_id, day_off_id)


@router.delete('/{business_id}/days-off/ranges/{start_date}', response_model=DayOffRangeResponse)
def remove_day_off_range(
    business_id: int,
    start_date: date,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return to_range_response(delete_day_off_group(db, business_id, start_date))
