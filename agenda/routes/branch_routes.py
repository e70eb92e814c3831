from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.routes.errors import ensure_database_ready, http_errors
from agenda.services.branches_store import create_branch, deactivate_branch, list_branches, update_branch
from agenda.services.businesses import get_business, require_owner

router = APIRouter(tags=['branches'])


class BranchPayload(BaseModel):
    name: str
    address: str | None = None
    city: str | None = None
    province: str | None = None
    phone: str | None = None
    email: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Branch name is required.')
        return normalized


class BranchUpdatePayload(BaseModel):
    name: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    phone: str | None = None
    email: str | None = None


class BranchResponse(BaseModel):
    id: int
    name: str
    address: str | None = None
    city: str | None = None
    province: str | None = None
    phone: str | None = None
    email: str | None = None
    is_active: bool
    display_order: int

    class Config:
        from_attributes = True


def _check_owner(db: Session, business_id: int, owner_email: str) -> None:
    require_owner(get_business(db, business_id), owner_email)


@router.get('/{business_id}/branches', response_model=list[BranchResponse])
def list_business_branches(
    business_id: int,
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        get_business(db, business_id)
        return list_branches(db, business_id, include_inactive=include_inactive)


@router.post('/{business_id}/branches', response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
def add_branch(
    business_id: int,
    data: BranchPayload,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return create_branch(db, business_id, **data.model_dump())


@router.patch('/{business_id}/branches/{branch_id}', response_model=BranchResponse)
def edit_branch(
    business_id: int,
    branch_id: int,
    data: BranchUpdatePayload,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        return update_branch(db, business_id, branch_id, **data.model_dump(exclude_unset=True))


@router.delete('/{business_id}/branches/{branch_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_branch(
    business_id: int,
    branch_id: int,
    owner_email: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with http_errors():
        _check_owner(db, business_id, owner_email)
        deactivate_branch(db, business_id, branch_id)
