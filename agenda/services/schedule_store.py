import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import PersistenceUnavailable
from agenda.models.schedule import DaySchedule
from agenda.scheduling.weekly import WEEKDAYS, DayHours, complete_week, validate_week

logger = logging.getLogger(__name__)


def get_day_hours(db: Session, business_id: int, weekday: int) -> DayHours:
    """Hours for one weekday. A day the owner never saved is closed."""
    row = db.query(DaySchedule).filter(
        DaySchedule.business_id == business_id,
        DaySchedule.day == weekday,
    ).first()
    if row is None:
        return DayHours.closed(weekday)
    return DayHours.from_row(row)


def get_saved_week(db: Session, business_id: int) -> dict[int, DayHours]:
    rows = db.query(DaySchedule).filter(DaySchedule.business_id == business_id).all()
    return {row.day: DayHours.from_row(row) for row in rows}


def get_week(db: Session, business_id: int) -> list[DayHours]:
    """Seven days for the owner's editor, pre-filled with defaults where unsaved."""
    return complete_week(list(get_saved_week(db, business_id).values()))


def get_published_week(db: Session, business_id: int) -> list[tuple[DayHours, bool]]:
    """Seven days as clients see them, each paired with whether the owner saved it.

    A day that was never saved is reported closed, matching ``get_day_hours``.
    """
    saved = get_saved_week(db, business_id)
    return [(saved[day], True) if day in saved else (DayHours.closed(day), False) for day in WEEKDAYS]


def replace_week(db: Session, business_id: int, days: list[DayHours]) -> list[DayHours]:
    """Replace all seven day rows in one transaction."""
    validate_week(days)

    try:
        db.query(DaySchedule).filter(DaySchedule.business_id == business_id).delete(synchronize_session=False)
        for day_hours in sorted(days, key=lambda item: item.day):
            db.add(
                DaySchedule(
                    business_id=business_id,
                    day=day_hours.day,
                    enabled=day_hours.enabled,
                    is_continuous=day_hours.is_continuous,
                    start_time=day_hours.start_time,
                    end_time=day_hours.end_time,
                    morning_start=day_hours.morning_start,
                    morning_end=day_hours.morning_end,
                    afternoon_start=day_hours.afternoon_start,
                    afternoon_end=day_hours.afternoon_end,
                    slot_duration=day_hours.slot_duration,
                )
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Weekly schedule update failed for business %s', business_id)
        raise PersistenceUnavailable('Could not save the weekly schedule.') from exc

    logger.info('Weekly schedule replaced for business %s', business_id)
    return get_week(db, business_id)
