import logging
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import DayOffNotFound, DuplicateDayOff, PersistenceUnavailable
from agenda.models.day_off import DayOff
from agenda.scheduling.days_off import DayOffRange, expand_range, group_ranges, normalize_reason

logger = logging.getLogger(__name__)


def list_days_off(
    db: Session,
    business_id: int,
    start: date | None = None,
    end: date | None = None,
) -> list[DayOff]:
    query = db.query(DayOff).filter(DayOff.business_id == business_id)
    if start is not None:
        query = query.filter(DayOff.date >= start)
    if end is not None:
        query = query.filter(DayOff.date <= end)
    return query.order_by(DayOff.date.asc()).all()


def day_off_dates(db: Session, business_id: int, start: date, end: date) -> set[date]:
    rows = db.query(DayOff.date).filter(
        DayOff.business_id == business_id,
        DayOff.date >= start,
        DayOff.date <= end,
    ).all()
    return {row_date for (row_date,) in rows}


def list_day_off_ranges(db: Session, business_id: int, start: date | None = None) -> list[DayOffRange]:
    return group_ranges(list_days_off(db, business_id, start=start))


def add_day_off(db: Session, business_id: int, day: date, reason: str | None = None) -> DayOff:
    existing = db.query(DayOff).filter(DayOff.business_id == business_id, DayOff.date == day).first()
    if existing is not None:
        raise DuplicateDayOff(f'{day.isoformat()} is already a day off.')

    day_off = DayOff(business_id=business_id, date=day, reason=normalize_reason(reason))
    try:
        db.add(day_off)
        db.commit()
        db.refresh(day_off)
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateDayOff(f'{day.isoformat()} is already a day off.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not save the day off.') from exc

    return day_off


def add_day_off_range(
    db: Session,
    business_id: int,
    start: date,
    end: date,
    reason: str | None = None,
) -> list[DayOff]:
    """Insert one row per date in [start, end], skipping dates already off."""
    dates = expand_range(start, end)
    already_off = day_off_dates(db, business_id, start, end)
    reason = normalize_reason(reason)

    created = [
        DayOff(business_id=business_id, date=day, reason=reason)
        for day in dates
        if day not in already_off
    ]
    if not created:
        return []

    try:
        db.add_all(created)
        db.commit()
        for day_off in created:
            db.refresh(day_off)
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateDayOff('Some of these dates were added meanwhile; reload and try again.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not save the day-off range.') from exc

    logger.info(
        'Added %s days off for business %s between %s and %s',
        len(created), business_id, start.isoformat(), end.isoformat(),
    )
    return created


def delete_day_off(db: Session, business_id: int, day_off_id: int) -> None:
    day_off = db.query(DayOff).filter(DayOff.id == day_off_id, DayOff.business_id == business_id).first()
    if day_off is None:
        raise DayOffNotFound('Day off not found.')

    try:
        db.delete(day_off)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not delete the day off.') from exc


def delete_day_off_group(db: Session, business_id: int, start: date) -> DayOffRange:
    """Delete the contiguous same-reason run that contains ``start``."""
    group = next(
        (
            candidate
            for candidate in list_day_off_ranges(db, business_id)
            if candidate.start <= start <= candidate.end
        ),
        None,
    )
    if group is None:
        raise DayOffNotFound(f'No day off found on {start.isoformat()}.')

    try:
        db.query(DayOff).filter(
            DayOff.business_id == business_id,
            DayOff.id.in_(group.day_off_ids),
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not delete the day-off range.') from exc

    return group
