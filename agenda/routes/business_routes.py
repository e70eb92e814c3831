from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.services.businesses import (
    create_business,
    get_business,
    normalize_email,
    set_temporarily_closed,
    update_capacity,
)

router = APIRouter(tags=['businesses'])


class CreateBusinessRequest(BaseModel):
    name: str
    owner_email: str
    timezone: str | None = None
    allow_multiple_appointments: bool = False
    max_appointments_per_slot: int = Field(default=1, ge=1)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Business name is required.')
        return normalized

    @field_validator('owner_email')
    @classmethod
    def validate_owner_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if '@' not in normalized:
            raise ValueError('Owner email is not valid.')
        return normalized


class CapacityRequest(BaseModel):
    allow_multiple_appointments: bool
    max_appointments_per_slot: int = Field(default=1, ge=1)


class ClosureRequest(BaseModel):
    temporarily_closed: bool


class BusinessResponse(BaseModel):
    id: int
    name: str
    timezone: str
    allow_multiple_appointments: bool
    max_appointments_per_slot: int
    temporarily_closed: bool

    class Config:
        from_attributes = True


@router.post('', response_model=BusinessResponse, status_code=status.HTTP_201_CREATED)
def register_business(data: CreateBusinessRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with http_errors():
        return create_business(
            db,
            name=data.name,
            owner_email=data.owner_email,
            timezone=data.timezone,
            allow_multiple_appointments=data.allow_multiple_appointments,
            max_appointments_per_slot=data.max_appointments_per_slot,
        )


@router.get('/{business_id}', response_model=BusinessResponse)
def read_business(business_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with http_errors():
        return get_business(db, business_id)


@router.put('/{business_id}/capacity', response_model=BusinessResponse)
def change_capacity(
    business_id: int,
    data: CapacityRequest,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        update_capacity(
            db,
            business_id,
            owner_email,
            allow_multiple=data.allow_multiple_appointments,
            max_per_slot=data.max_appointments_per_slot,
        )
        return get_business(db, business_id)


@router.put('/{business_id}/closure', response_model=BusinessResponse)
def change_closure(
    business_id: int,
    data: ClosureRequest,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        return set_temporarily_closed(db, business_id, owner_email, data.temporarily_closed)
