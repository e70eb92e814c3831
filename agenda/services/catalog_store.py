import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import ConfigurationError, PersistenceUnavailable, ServiceNotFound, ServiceRequired
from agenda.models.service import ALL_WEEKDAYS, Service
from agenda.scheduling.catalog import BookableService, GeneralService, Offering
from agenda.services.branches_store import check_branch_ids

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'name',
    'duration',
    'price',
    'available_days',
    'start_date',
    'end_date',
    'auto_confirm',
    'branches_available',
)


def _validated(fields: dict) -> dict:
    name = (fields.get('name') or '').strip()
    if not name:
        raise ConfigurationError('Service name is required.')

    duration = fields.get('duration')
    if duration is None or int(duration) <= 0:
        raise ConfigurationError('Service duration must be a positive number of minutes.')

    price = Decimal(str(fields.get('price') or 0))
    if price < 0:
        raise ConfigurationError('Service price cannot be negative.')

    available_days = fields.get('available_days')
    if available_days is None:
        available_days = list(ALL_WEEKDAYS)
    available_days = sorted({int(day) for day in available_days})
    if not available_days:
        raise ConfigurationError('A service must be available on at least one weekday.')
    if any(day not in ALL_WEEKDAYS for day in available_days):
        raise ConfigurationError('Weekdays must be between 0 (Monday) and 6 (Sunday).')

    start_date = fields.get('start_date')
    end_date = fields.get('end_date')
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ConfigurationError('The service end date must be on or after its start date.')

    branches_available = fields.get('branches_available')
    if branches_available:
        branches_available = sorted({int(branch_id) for branch_id in branches_available})
    else:
        branches_available = None

    return {
        'name': name,
        'duration': int(duration),
        'price': price,
        'available_days': available_days,
        'start_date': start_date,
        'end_date': end_date,
        'auto_confirm': bool(fields.get('auto_confirm', False)),
        'branches_available': branches_available,
    }


def list_services(db: Session, business_id: int, include_inactive: bool = False) -> list[Service]:
    query = db.query(Service).filter(Service.business_id == business_id)
    if not include_inactive:
        query = query.filter(Service.active.is_(True))
    return query.order_by(Service.price.asc(), Service.id.asc()).all()


def get_service(db: Session, business_id: int, service_id: int) -> Service:
    service = db.query(Service).filter(Service.id == service_id, Service.business_id == business_id).first()
    if service is None:
        raise ServiceNotFound(f'Service {service_id} not found.')
    return service


def create_service(db: Session, business_id: int, **fields) -> Service:
    validated = _validated(fields)
    check_branch_ids(db, business_id, validated['branches_available'])
    service = Service(business_id=business_id, active=True, **validated)
    try:
        db.add(service)
        db.commit()
        db.refresh(service)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not save the service.') from exc
    return service


def update_service(db: Session, business_id: int, service_id: int, **changes) -> Service:
    service = get_service(db, business_id, service_id)
    current = {field: getattr(service, field) for field in EDITABLE_FIELDS}
    current.update({key: value for key, value in changes.items() if key in EDITABLE_FIELDS})

    validated = _validated(current)
    check_branch_ids(db, business_id, validated['branches_available'])
    for field, value in validated.items():
        setattr(service, field, value)

    try:
        db.commit()
        db.refresh(service)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not update the service.') from exc
    return service


def deactivate_service(db: Session, business_id: int, service_id: int) -> None:
    """Hide a service from new bookings; reservations keep their snapshot."""
    service = get_service(db, business_id, service_id)
    service.active = False
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not deactivate the service.') from exc


def _bookable_rows(db: Session, business_id: int, today: date) -> list[Service]:
    return db.query(Service).filter(
        Service.business_id == business_id,
        Service.active.is_(True),
        or_(Service.end_date.is_(None), Service.end_date >= today),
    ).order_by(Service.price.asc(), Service.id.asc()).all()


def list_offerings(db: Session, business_id: int, today: date) -> list[BookableService]:
    """What a client can choose from; the general offering when nothing is configured."""
    rows = _bookable_rows(db, business_id, today)
    if not rows:
        return [GeneralService()]
    return [Offering.from_row(row) for row in rows]


def resolve_offering(db: Session, business_id: int, service_id: int | None, today: date) -> BookableService:
    rows = _bookable_rows(db, business_id, today)

    if service_id is None:
        if rows:
            raise ServiceRequired('Choose one of the services offered by this business.')
        return GeneralService()

    row = next((candidate for candidate in rows if candidate.id == service_id), None)
    if row is None:
        raise ServiceNotFound(f'Service {service_id} is not available for booking.')
    return Offering.from_row(row)
