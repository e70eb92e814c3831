"""
Reservation commit protocol.

``reserve`` turns a slot the client picked into a durable reservation, or
refuses it. Availability is re-derived from the database at commit time
under the per-slot lock; whatever the client saw when it listed slots is
never trusted.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from uuid import uuid4

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core import config
from agenda.core.errors import (
    InvalidTransition,
    NotBookable,
    PersistenceUnavailable,
    ReservationNotFound,
    ReservationOutcomeUnknown,
    SlotNoLongerAvailable,
)
from agenda.models.reservation import (
    RESERVATION_STATUSES,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    Reservation,
)
from agenda.scheduling.capacity import CapacityPolicy
from agenda.scheduling.catalog import BookableService
from agenda.scheduling.slots import offered_times
from agenda.services.businesses import get_business, local_now, require_owner
from agenda.services.branches_store import resolve_branch
from agenda.services.catalog_store import resolve_offering
from agenda.services.days_off_store import day_off_dates
from agenda.services.ledger import SlotLockRegistry, lowest_free_seat, occupancy, slot_locks, taken_seats
from agenda.services.notifier import RESERVATION_CREATED, RESERVATION_STATUS_CHANGED, Notifier, safe_notify
from agenda.services.schedule_store import get_day_hours

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_CANCELLED},
    STATUS_CANCELLED: set(),
}


@dataclass(frozen=True)
class ContactInfo:
    name: str
    email: str | None = None
    phone: str | None = None
    notes: str | None = None


def reserve(
    db: Session,
    business_id: int,
    target_date: date,
    slot_time: time,
    contact: ContactInfo,
    service_id: int | None = None,
    branch_id: int | None = None,
    now: datetime | None = None,
    notifier: Notifier | None = None,
    locks: SlotLockRegistry = slot_locks,
) -> Reservation:
    """Admit or reject one reservation.

    Raises ``NotBookable`` when the time is not a slot the business offers
    or the branch does not offer the service,
    ``SlotNoLongerAvailable`` when capacity was taken meanwhile and
    ``PersistenceUnavailable`` when storage failed or the slot lock could
    not be acquired in time. In every failure case no row is left behind.
    """
    if slot_time.tzinfo is not None or slot_time.second or slot_time.microsecond:
        raise NotBookable(f'{slot_time.isoformat()} is not a slot start; use a local HH:MM time.')

    try:
        business = get_business(db, business_id)
        now = now or local_now(business)

        if business.temporarily_closed:
            raise NotBookable('The business is temporarily closed and is not taking reservations.')

        service = resolve_offering(db, business_id, service_id, now.date())
        branch = resolve_branch(db, business_id, branch_id, service)
        day = get_day_hours(db, business_id, target_date.weekday())
        days_off = day_off_dates(db, business_id, target_date, target_date)
        policy = CapacityPolicy.from_business(business)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not read the business configuration.') from exc

    if slot_time not in offered_times(day, days_off, service, target_date, now):
        raise NotBookable(f'{target_date.isoformat()} {slot_time.strftime("%H:%M")} is not an available slot.')

    booking_token = str(uuid4())
    key = (business_id, target_date, slot_time)

    with locks.hold(key, timeout=config.RESERVATION_LOCK_TIMEOUT_SECONDS):
        reservation = _insert_with_recheck(
            db,
            business_id=business_id,
            target_date=target_date,
            slot_time=slot_time,
            duration=service.effective_duration(day),
            service=service,
            contact=contact,
            branch_id=None if branch is None else branch.id,
            policy=policy,
            booking_token=booking_token,
        )

    logger.info(
        'Reservation %s committed for business %s on %s at %s (seat %s)',
        reservation.id, business_id, target_date.isoformat(), slot_time.strftime('%H:%M'), reservation.seat,
    )
    safe_notify(notifier, reservation.id, business_id, RESERVATION_CREATED)
    return reservation


def _insert_with_recheck(
    db: Session,
    business_id: int,
    target_date: date,
    slot_time: time,
    duration: int,
    service: BookableService,
    contact: ContactInfo,
    branch_id: int | None,
    policy: CapacityPolicy,
    booking_token: str,
) -> Reservation:
    for attempt in range(1, config.RESERVATION_MAX_ATTEMPTS + 1):
        try:
            occupied = occupancy(db, business_id, target_date, slot_time)
            if not policy.has_room(occupied):
                raise SlotNoLongerAvailable('This time is no longer available. Please choose another one.')

            seat = lowest_free_seat(taken_seats(db, business_id, target_date, slot_time), policy.effective_max)
            if seat is None:
                raise SlotNoLongerAvailable('This time is no longer available. Please choose another one.')

            reservation = Reservation(
                business_id=business_id,
                service_id=service.id,
                branch_id=branch_id,
                service_name=service.name,
                service_price=service.price,
                date=target_date,
                time=slot_time,
                duration=duration,
                status=STATUS_CONFIRMED if service.auto_confirm else STATUS_PENDING,
                seat=seat,
                booking_token=booking_token,
                client_name=contact.name,
                client_email=contact.email,
                client_phone=contact.phone,
                notes=contact.notes,
            )
            db.add(reservation)
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info('Seat collision on %s %s (attempt %s), recounting', target_date, slot_time, attempt)
            continue
        except SlotNoLongerAvailable:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceUnavailable('Could not reserve the slot; nothing was booked.') from exc

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info('Seat collision at commit on %s %s (attempt %s), recounting', target_date, slot_time, attempt)
            continue
        except DBAPIError as exc:
            db.rollback()
            return _resolve_ambiguous_commit(db, booking_token, exc)

        db.refresh(reservation)
        return reservation

    raise SlotNoLongerAvailable('This time is no longer available. Please choose another one.')


def _resolve_ambiguous_commit(db: Session, booking_token: str, error: Exception) -> Reservation:
    """The commit may or may not have landed; look for the row before failing."""
    logger.warning('Commit outcome unknown for booking %s: %s', booking_token, error)
    try:
        with Session(bind=db.get_bind()) as lookup:
            existing = find_by_booking_token(lookup, booking_token)
            if existing is not None:
                lookup.expunge(existing)
    except SQLAlchemyError as exc:
        raise ReservationOutcomeUnknown(
            'The reservation could not be confirmed. Check it with your booking code before retrying.',
            booking_token=booking_token,
        ) from exc

    if existing is None:
        raise PersistenceUnavailable('Could not reserve the slot; nothing was booked.') from error

    logger.info('Booking %s was committed despite the error', booking_token)
    return db.merge(existing, load=False)


def find_by_booking_token(db: Session, booking_token: str) -> Reservation | None:
    return db.query(Reservation).filter(Reservation.booking_token == booking_token).first()


def get_reservation(db: Session, business_id: int, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.business_id == business_id,
    ).first()
    if reservation is None:
        raise ReservationNotFound('Reservation not found.')
    return reservation


def list_reservations(
    db: Session,
    business_id: int,
    owner_email: str,
    target_date: date | None = None,
    include_cancelled: bool = False,
) -> list[Reservation]:
    require_owner(get_business(db, business_id), owner_email)

    query = db.query(Reservation).filter(Reservation.business_id == business_id)
    if target_date is not None:
        query = query.filter(Reservation.date == target_date)
    if not include_cancelled:
        query = query.filter(Reservation.status != STATUS_CANCELLED)
    return query.order_by(Reservation.date.asc(), Reservation.time.asc(), Reservation.id.asc()).all()


def update_reservation_status(
    db: Session,
    business_id: int,
    reservation_id: int,
    status: str,
    owner_email: str,
    notifier: Notifier | None = None,
) -> Reservation:
    """Owner-only lifecycle change. Date, time and duration are never touched."""
    if status not in RESERVATION_STATUSES:
        raise InvalidTransition(f'Unknown reservation status {status!r}.')

    require_owner(get_business(db, business_id), owner_email)
    reservation = get_reservation(db, business_id, reservation_id)

    if status == reservation.status:
        return reservation
    if status not in ALLOWED_TRANSITIONS[reservation.status]:
        raise InvalidTransition(f'A {reservation.status} reservation cannot become {status}.')

    reservation.status = status
    if status == STATUS_CANCELLED:
        reservation.seat = None

    try:
        db.commit()
        db.refresh(reservation)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not update the reservation.') from exc

    logger.info('Reservation %s of business %s is now %s', reservation_id, business_id, status)
    safe_notify(notifier, reservation.id, business_id, RESERVATION_STATUS_CHANGED)
    return reservation


def cancel_reservation(
    db: Session,
    business_id: int,
    reservation_id: int,
    owner_email: str,
    notifier: Notifier | None = None,
) -> Reservation:
    return update_reservation_status(db, business_id, reservation_id, STATUS_CANCELLED, owner_email, notifier)
