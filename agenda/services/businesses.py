import logging
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core import config
from agenda.core.errors import BusinessNotFound, ConfigurationError, OwnerOnly, PersistenceUnavailable
from agenda.models.business import Business
from agenda.scheduling.capacity import CapacityPolicy

logger = logging.getLogger(__name__)

MAX_APPOINTMENTS_PER_SLOT = 100


def normalize_email(value: str | None) -> str:
    return (value or '').strip().lower()


def get_business(db: Session, business_id: int) -> Business:
    business = db.query(Business).filter(Business.id == business_id).first()
    if business is None:
        raise BusinessNotFound(f'Business {business_id} not found.')
    return business


def require_owner(business: Business, owner_email: str | None) -> None:
    if normalize_email(owner_email) != normalize_email(business.owner_email):
        raise OwnerOnly('Only the business owner can make this change.')


def business_zone(business: Business) -> ZoneInfo:
    try:
        return ZoneInfo(business.timezone or config.DEFAULT_TIMEZONE)
    except ZoneInfoNotFoundError:
        logger.warning('Unknown timezone %r for business %s, using default', business.timezone, business.id)
        return ZoneInfo(config.DEFAULT_TIMEZONE)


def local_now(business: Business) -> datetime:
    """Naive wall-clock time in the business's own timezone."""
    return datetime.now(business_zone(business)).replace(tzinfo=None)


def create_business(
    db: Session,
    name: str,
    owner_email: str,
    timezone: str | None = None,
    allow_multiple_appointments: bool = False,
    max_appointments_per_slot: int = 1,
) -> Business:
    timezone = timezone or config.DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except ZoneInfoNotFoundError as exc:
        raise ConfigurationError(f'Unknown timezone {timezone!r}.') from exc
    max_appointments_per_slot = _stored_max_per_slot(allow_multiple_appointments, max_appointments_per_slot)

    business = Business(
        name=name.strip(),
        owner_email=normalize_email(owner_email),
        timezone=timezone,
        allow_multiple_appointments=allow_multiple_appointments,
        max_appointments_per_slot=max_appointments_per_slot,
        temporarily_closed=False,
    )
    try:
        db.add(business)
        db.commit()
        db.refresh(business)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not save the business.') from exc
    return business


def _stored_max_per_slot(allow_multiple: bool, max_per_slot: int) -> int:
    """The per-slot limit to persist; without multiple appointments it is always 1."""
    if not allow_multiple:
        return 1
    if max_per_slot < 1:
        raise ConfigurationError('At least one appointment per slot must be allowed.')
    if max_per_slot > MAX_APPOINTMENTS_PER_SLOT:
        raise ConfigurationError(f'At most {MAX_APPOINTMENTS_PER_SLOT} appointments per slot are supported.')
    return max_per_slot


def update_capacity(
    db: Session,
    business_id: int,
    owner_email: str,
    allow_multiple: bool,
    max_per_slot: int,
) -> CapacityPolicy:
    """Change the per-slot capacity.

    Existing reservations are never touched, even when a slot now holds
    more than the new limit.
    """
    business = get_business(db, business_id)
    require_owner(business, owner_email)
    max_per_slot = _stored_max_per_slot(allow_multiple, max_per_slot)

    business.allow_multiple_appointments = allow_multiple
    business.max_appointments_per_slot = max_per_slot
    try:
        db.commit()
        db.refresh(business)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not update the capacity policy.') from exc

    logger.info(
        'Capacity for business %s set to allow_multiple=%s max_per_slot=%s',
        business_id, allow_multiple, max_per_slot,
    )
    return CapacityPolicy.from_business(business)


def set_temporarily_closed(db: Session, business_id: int, owner_email: str, closed: bool) -> Business:
    business = get_business(db, business_id)
    require_owner(business, owner_email)
    business.temporarily_closed = closed
    try:
        db.commit()
        db.refresh(business)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not update the business.') from exc
    return business
