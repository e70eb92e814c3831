import pytest
from fastapi import BackgroundTasks, HTTPException
from pydantic import ValidationError

from agenda.routes.branch_routes import (
    BranchPayload,
    BranchUpdatePayload,
    add_branch,
    edit_branch,
    list_business_branches,
    remove_branch,
)
from agenda.routes.reservation_routes import CreateReservationRequest, create_reservation
from agenda.routes.service_routes import ServicePayload, add_service
from schedule_factories import OWNER_EMAIL


def test_branch_payload_requires_a_name() -> None:
    assert BranchPayload(name=' Centro ').name == 'Centro'

    with pytest.raises(ValidationError):
        BranchPayload(name='  ')


def test_add_edit_and_remove_branch(db, shop) -> None:
    created = add_branch(shop.id, BranchPayload(name='Centro', city='Córdoba'), owner_email=OWNER_EMAIL, db=db)
    assert created.is_active is True

    edited = edit_branch(shop.id, created.id, BranchUpdatePayload(address='San Martín 100'), owner_email=OWNER_EMAIL, db=db)
    assert edited.address == 'San Martín 100'
    assert edited.city == 'Córdoba'

    remove_branch(shop.id, created.id, owner_email=OWNER_EMAIL, db=db)

    assert list_business_branches(shop.id, include_inactive=False, db=db) == []


def test_add_branch_is_owner_only(db, shop) -> None:
    with pytest.raises(HTTPException) as exc_info:
        add_branch(shop.id, BranchPayload(name='Centro'), owner_email='client@example.com', db=db)

    assert exc_info.value.status_code == 403


def test_edit_unknown_branch_returns_not_found(db, shop) -> None:
    with pytest.raises(HTTPException) as exc_info:
        edit_branch(shop.id, 999, BranchUpdatePayload(name='Norte'), owner_email=OWNER_EMAIL, db=db)

    assert exc_info.value.status_code == 404


def test_reservation_at_a_branch_without_the_service_is_rejected(db, shop, next_monday) -> None:
    centro = add_branch(shop.id, BranchPayload(name='Centro'), owner_email=OWNER_EMAIL, db=db)
    norte = add_branch(shop.id, BranchPayload(name='Norte'), owner_email=OWNER_EMAIL, db=db)
    service = add_service(
        shop.id,
        ServicePayload(name='Corte', duration=30, branches_available=[norte.id]),
        owner_email=OWNER_EMAIL,
        db=db,
    )
    request = CreateReservationRequest(
        date=next_monday,
        time='09:00',
        service_id=service.id,
        branch_id=centro.id,
        client_name='Ana Pérez',
    )

    with pytest.raises(HTTPException) as exc_info:
        create_reservation(shop.id, request, BackgroundTasks(), db=db)
    assert exc_info.value.status_code == 400

    booked = create_reservation(
        shop.id,
        request.model_copy(update={'branch_id': norte.id}),
        BackgroundTasks(),
        db=db,
    )
    assert booked.branch_id == norte.id
