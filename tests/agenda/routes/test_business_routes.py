import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from agenda.routes.business_routes import (
    CapacityRequest,
    ClosureRequest,
    CreateBusinessRequest,
    change_capacity,
    change_closure,
    read_business,
    register_business,
)
from schedule_factories import OWNER_EMAIL


def test_create_business_request_normalizes_owner_email() -> None:
    request = CreateBusinessRequest(name=' Estudio Norte ', owner_email=' OWNER@Example.com ')

    assert request.name == 'Estudio Norte'
    assert request.owner_email == 'owner@example.com'

    with pytest.raises(ValidationError):
        CreateBusinessRequest(name='Estudio Norte', owner_email='owner')


def test_register_and_read_business(db) -> None:
    created = register_business(
        CreateBusinessRequest(name='Estudio Norte', owner_email=OWNER_EMAIL, timezone='Europe/Madrid'),
        db=db,
    )

    found = read_business(created.id, db=db)

    assert found.name == 'Estudio Norte'
    assert found.timezone == 'Europe/Madrid'
    assert found.max_appointments_per_slot == 1
    assert found.temporarily_closed is False


def test_register_business_with_unknown_timezone_is_rejected(db) -> None:
    with pytest.raises(HTTPException) as exc_info:
        register_business(
            CreateBusinessRequest(name='Estudio Norte', owner_email=OWNER_EMAIL, timezone='Mars/Olympus'),
            db=db,
        )

    assert exc_info.value.status_code == 422


def test_read_unknown_business_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as exc_info:
        read_business(404, db=db)

    assert exc_info.value.status_code == 404


def test_change_capacity_stores_one_when_multiple_is_off(db, shop) -> None:
    single = change_capacity(
        shop.id,
        CapacityRequest(allow_multiple_appointments=False, max_appointments_per_slot=3),
        owner_email=OWNER_EMAIL,
        db=db,
    )
    assert single.allow_multiple_appointments is False
    assert single.max_appointments_per_slot == 1

    updated = change_capacity(
        shop.id,
        CapacityRequest(allow_multiple_appointments=True, max_appointments_per_slot=3),
        owner_email=OWNER_EMAIL,
        db=db,
    )
    assert updated.max_appointments_per_slot == 3


def test_change_closure_is_owner_only(db, shop) -> None:
    with pytest.raises(HTTPException) as exc_info:
        change_closure(shop.id, ClosureRequest(temporarily_closed=True), owner_email='client@example.com', db=db)
    assert exc_info.value.status_code == 403

    closed = change_closure(shop.id, ClosureRequest(temporarily_closed=True), owner_email=OWNER_EMAIL, db=db)
    assert closed.temporarily_closed is True
