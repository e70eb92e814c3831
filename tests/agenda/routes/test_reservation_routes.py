from datetime import time

import pytest
from fastapi import BackgroundTasks, HTTPException
from pydantic import ValidationError

from agenda.core.errors import ReservationOutcomeUnknown
from agenda.models.reservation import STATUS_CANCELLED, STATUS_PENDING
from agenda.routes.reservation_routes import (
    CreateReservationRequest,
    UpdateReservationStatusRequest,
    change_reservation_status,
    create_reservation,
    get_reservation_by_token,
    list_business_reservations,
)
from schedule_factories import OWNER_EMAIL


def _request(slot_date, slot_time=time(9, 0), **overrides) -> CreateReservationRequest:
    fields = {'date': slot_date, 'time': slot_time, 'client_name': 'Ana Pérez', 'client_email': 'ana@example.com'}
    fields.update(overrides)
    return CreateReservationRequest(**fields)


def test_create_reservation_request_normalizes_contact_fields(next_monday) -> None:
    request = _request(
        next_monday,
        client_name='  Ana   Pérez ',
        client_email=' ANA@Example.com ',
        client_phone='+54 9 11 5555-0000',
        notes='   ',
    )

    assert request.client_name == 'Ana Pérez'
    assert request.client_email == 'ana@example.com'
    assert request.client_phone == '+5491155550000'
    assert request.notes is None


@pytest.mark.parametrize(
    'overrides',
    [
        {'client_name': '   '},
        {'client_email': 'not-an-email'},
        {'notes': 'x' * 601},
    ],
)
def test_create_reservation_request_rejects_bad_contact_fields(next_monday, overrides) -> None:
    with pytest.raises(ValidationError):
        _request(next_monday, **overrides)


def test_update_status_request_rejects_unknown_status() -> None:
    assert UpdateReservationStatusRequest(status=' Confirmed ').status == 'confirmed'

    with pytest.raises(ValidationError):
        UpdateReservationStatusRequest(status='done')


def test_create_reservation_books_slot_and_queues_notification(db, shop, next_monday) -> None:
    background_tasks = BackgroundTasks()

    reservation = create_reservation(shop.id, _request(next_monday), background_tasks, db=db)

    assert reservation.status == STATUS_PENDING
    assert reservation.time == time(9, 0)
    assert reservation.client_email == 'ana@example.com'
    assert len(background_tasks.tasks) == 1


def test_create_reservation_for_taken_slot_returns_conflict(db, shop, next_monday) -> None:
    create_reservation(shop.id, _request(next_monday), BackgroundTasks(), db=db)
    background_tasks = BackgroundTasks()

    with pytest.raises(HTTPException) as exc_info:
        create_reservation(shop.id, _request(next_monday, client_name='Bruno'), background_tasks, db=db)

    assert exc_info.value.status_code == 409
    assert background_tasks.tasks == []


def test_create_reservation_off_grid_returns_bad_request(db, shop, next_monday) -> None:
    with pytest.raises(HTTPException) as exc_info:
        create_reservation(shop.id, _request(next_monday, slot_time=time(9, 10)), BackgroundTasks(), db=db)

    assert exc_info.value.status_code == 400


def test_unknown_outcome_returns_booking_token(db, shop, next_monday, monkeypatch) -> None:
    def lost_connection(*args, **kwargs):
        raise ReservationOutcomeUnknown('Check your booking code.', booking_token='abc-123')

    monkeypatch.setattr('agenda.routes.reservation_routes.reserve', lost_connection)

    with pytest.raises(HTTPException) as exc_info:
        create_reservation(shop.id, _request(next_monday), BackgroundTasks(), db=db)

    assert exc_info.value.status_code == 503
    assert exc_info.value.detail == {'message': 'Check your booking code.', 'booking_token': 'abc-123'}


def test_get_reservation_by_token_is_scoped_to_business(db, shop, next_monday) -> None:
    reservation = create_reservation(shop.id, _request(next_monday), BackgroundTasks(), db=db)

    found = get_reservation_by_token(shop.id, f' {reservation.booking_token} ', db=db)
    assert found.id == reservation.id

    with pytest.raises(HTTPException) as exc_info:
        get_reservation_by_token(shop.id + 1, reservation.booking_token, db=db)
    assert exc_info.value.status_code == 404


def test_list_business_reservations_is_owner_only(db, shop, next_monday) -> None:
    reservation = create_reservation(shop.id, _request(next_monday), BackgroundTasks(), db=db)

    listed = list_business_reservations(
        shop.id,
        owner_email=OWNER_EMAIL,
        reservation_date=next_monday,
        include_cancelled=False,
        db=db,
    )
    assert [item.id for item in listed] == [reservation.id]

    with pytest.raises(HTTPException) as exc_info:
        list_business_reservations(
            shop.id,
            owner_email='client@example.com',
            reservation_date=None,
            include_cancelled=False,
            db=db,
        )
    assert exc_info.value.status_code == 403


def test_change_reservation_status_cancels_and_rejects_reopening(db, shop, next_monday) -> None:
    reservation = create_reservation(shop.id, _request(next_monday), BackgroundTasks(), db=db)
    background_tasks = BackgroundTasks()

    cancelled = change_reservation_status(
        shop.id,
        reservation.id,
        UpdateReservationStatusRequest(status='cancelled'),
        background_tasks,
        owner_email=OWNER_EMAIL,
        db=db,
    )

    assert cancelled.status == STATUS_CANCELLED
    assert len(background_tasks.tasks) == 1

    with pytest.raises(HTTPException) as exc_info:
        change_reservation_status(
            shop.id,
            reservation.id,
            UpdateReservationStatusRequest(status='confirmed'),
            BackgroundTasks(),
            owner_email=OWNER_EMAIL,
            db=db,
        )
    assert exc_info.value.status_code == 409
