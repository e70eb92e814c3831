from datetime import date, datetime, time
from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from agenda.core.errors import ReservationNotFound
from agenda.database import get_db
from agenda.models.reservation import RESERVATION_STATUSES
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.services.notifier import BackgroundTaskNotifier, default_notifier
from agenda.services.reservations import (
    ContactInfo,
    find_by_booking_token,
    list_reservations,
    reserve,
    update_reservation_status,
)

router = APIRouter(tags=['reservations'])

MAX_NOTES_LENGTH = 600
MAX_NAME_LENGTH = 120


class CreateReservationRequest(BaseModel):
    date: date
    time: time
    service_id: int | None = None
    branch_id: int | None = None
    client_name: str
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None

    @field_validator('client_name')
    @classmethod
    def validate_client_name(cls, value: str) -> str:
        normalized = ' '.join(value.split())
        if not normalized:
            raise ValueError('Client name is required.')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Client name must be {MAX_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('client_email')
    @classmethod
    def validate_client_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if not normalized:
            return None
        if '@' not in normalized:
            raise ValueError('Client email is not valid.')
        return normalized

    @field_validator('client_phone')
    @classmethod
    def validate_client_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = ''.join(character for character in value if character.isdigit() or character == '+')
        return normalized or None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateReservationStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in RESERVATION_STATUSES:
            raise ValueError('Invalid reservation status.')
        return normalized


class ReservationResponse(BaseModel):
    id: int
    business_id: int
    service_id: int | None = None
    branch_id: int | None = None
    service_name: str
    service_price: Decimal
    date: date
    time: time
    duration: int
    status: str
    booking_token: str
    client_name: str
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.post(
    '/{business_id}/reservations',
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    business_id: int,
    data: CreateReservationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        return reserve(
            db,
            business_id=business_id,
            target_date=data.date,
            slot_time=data.time,
            contact=ContactInfo(
                name=data.client_name,
                email=data.client_email,
                phone=data.client_phone,
                notes=data.notes,
            ),
            service_id=data.service_id,
            branch_id=data.branch_id,
            notifier=BackgroundTaskNotifier(background_tasks, default_notifier),
        )


@router.get('/{business_id}/reservations/by-token/{booking_token}', response_model=ReservationResponse)
def get_reservation_by_token(business_id: int, booking_token: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    with http_errors():
        reservation = find_by_booking_token(db, booking_token.strip())
        if reservation is None or reservation.business_id != business_id:
            raise ReservationNotFound('Reservation not found.')
        return reservation


@router.get('/{business_id}/reservations', response_model=list[ReservationResponse])
def list_business_reservations(
    business_id: int,
    owner_email: str = Query(...),
    reservation_date: date | None = Query(default=None, alias='date'),
    include_cancelled: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        return list_reservations(
            db,
            business_id,
            owner_email,
            target_date=reservation_date,
            include_cancelled=include_cancelled,
        )


@router.patch('/{business_id}/reservations/{reservation_id}', response_model=ReservationResponse)
def change_reservation_status(
    business_id: int,
    reservation_id: int,
    data: UpdateReservationStatusRequest,
    background_tasks: BackgroundTasks,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        return update_reservation_status(
            db,
            business_id,
            reservation_id,
            data.status,
            owner_email,
            notifier=BackgroundTaskNotifier(background_tasks, default_notifier),
        )
