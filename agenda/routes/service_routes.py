from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.services.businesses import get_business, require_owner
from agenda.services.catalog_store import create_service, deactivate_service, list_services, update_service

router = APIRouter(tags=['services'])


class ServicePayload(BaseModel):
    name: str
    duration: int = Field(gt=0)
    price: Decimal = Field(default=Decimal(0), ge=0)
    available_days: list[int] = Field(default_factory=lambda: list(range(7)))
    start_date: date | None = None
    end_date: date | None = None
    auto_confirm: bool = False
    branches_available: list[int] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        return normalized


class ServiceUpdatePayload(BaseModel):
    name: str | None = None
    duration: int | None = Field(default=None, gt=0)
    price: Decimal | None = Field(default=None, ge=0)
    available_days: list[int] | None = None
    start_date: date | None = None
    end_date: date | None = None
    auto_confirm: bool | None = None
    branches_available: list[int] | None = None


class ServiceResponse(BaseModel):
    id: int
    name: str
    duration: int
    price: Decimal
    available_days: list[int]
    start_date: date | None = None
    end_date: date | None = None
    active: bool
    auto_confirm: bool
    branches_available: list[int] | None = None

    class Config:
        from_attributes = True


def _check_owner(db: Session, business_id: int, owner_email: str) -> None:
    require_owner(get_business(db, business_id), owner_email)


@router.get('/{business_id}/services', response_model=list[ServiceResponse])
def list_business_services(
    business_id: int,
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        get_business(db, business_id)
        return list_services(db, business_id, include_inactive=include_inactive)


@router.post('/{business_id}/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def add_service(
    business_id: int,
    data: ServicePayload,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return create_service(db, business_id, **data.model_dump())


@router.patch('/{business_id}/services/{service_id}', response_model=ServiceResponse)
def edit_service(
    business_id: int,
    service_id: int,
    data: ServiceUpdatePayload,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return update_service(db, business_id, service_id, **data.model_dump(exclude_unset=True))


@router.delete('/{business_id}/services/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_service(
    business_id: int,
    service_id: int,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        deactivate_service(db, business_id, service_id)
