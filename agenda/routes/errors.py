from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from agenda.core.errors import (
    AgendaError,
    BranchNotFound,
    BusinessNotFound,
    ConfigurationError,
    DayOffNotFound,
    DuplicateDayOff,
    InvalidTransition,
    NotBookable,
    OwnerOnly,
    PersistenceUnavailable,
    ReservationNotFound,
    ReservationOutcomeUnknown,
    ServiceNotFound,
    ServiceRequired,
    SlotNoLongerAvailable,
)
from agenda.database import ensure_reservation_schema, ensure_service_schema

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

STATUS_CODES: dict[type[AgendaError], int] = {
    ConfigurationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotBookable: status.HTTP_400_BAD_REQUEST,
    ServiceRequired: status.HTTP_400_BAD_REQUEST,
    OwnerOnly: status.HTTP_403_FORBIDDEN,
    BusinessNotFound: status.HTTP_404_NOT_FOUND,
    BranchNotFound: status.HTTP_404_NOT_FOUND,
    ServiceNotFound: status.HTTP_404_NOT_FOUND,
    ReservationNotFound: status.HTTP_404_NOT_FOUND,
    DayOffNotFound: status.HTTP_404_NOT_FOUND,
    SlotNoLongerAvailable: status.HTTP_409_CONFLICT,
    DuplicateDayOff: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    PersistenceUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: AgendaError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            status_code = STATUS_CODES[error_type]
            break

    if isinstance(exc, ReservationOutcomeUnknown):
        return HTTPException(
            status_code=status_code,
            detail={'message': str(exc), 'booking_token': exc.booking_token},
        )

    return HTTPException(status_code=status_code, detail=str(exc))


def ensure_database_ready() -> None:
    try:
        ensure_reservation_schema()
        ensure_service_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@contextmanager
def http_errors() -> Iterator[None]:
    """Translate domain and storage failures raised inside a route."""
    try:
        yield
    except AgendaError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
