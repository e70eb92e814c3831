from dataclasses import replace
from datetime import date, time

import pytest

from agenda.core.errors import (
    ConfigurationError,
    DayOffNotFound,
    DuplicateDayOff,
    OwnerOnly,
    ServiceNotFound,
    ServiceRequired,
)
from agenda.models.day_off import DayOff
from agenda.models.schedule import DaySchedule
from agenda.scheduling.catalog import GeneralService, Offering
from agenda.scheduling.weekly import DayHours
from agenda.services.businesses import update_capacity
from agenda.services.catalog_store import (
    create_service,
    deactivate_service,
    list_offerings,
    resolve_offering,
    update_service,
)
from agenda.services.days_off_store import (
    add_day_off,
    add_day_off_range,
    delete_day_off,
    delete_day_off_group,
    list_day_off_ranges,
    list_days_off,
)
from agenda.services.schedule_store import get_day_hours, get_week, replace_week
from schedule_factories import OWNER_EMAIL, continuous_day, split_day, weekdays_open_week

TODAY = date(2026, 1, 1)


def test_replace_week_stores_exactly_seven_rows(db, shop) -> None:
    week = weekdays_open_week()
    week[0] = split_day(0)

    saved = replace_week(db, shop.id, week)

    assert db.query(DaySchedule).filter(DaySchedule.business_id == shop.id).count() == 7
    assert saved[0].is_continuous is False
    assert get_day_hours(db, shop.id, 0) == split_day(0)


def test_replace_week_rejects_invalid_day_and_keeps_previous_rows(db, shop) -> None:
    week = weekdays_open_week()
    week[3] = continuous_day(3, start=time(18, 0), end=time(9, 0))

    with pytest.raises(ConfigurationError):
        replace_week(db, shop.id, week)

    assert get_week(db, shop.id) == weekdays_open_week()


def test_unsaved_weekday_is_closed_for_booking(db, shop) -> None:
    db.query(DaySchedule).filter(DaySchedule.business_id == shop.id, DaySchedule.day == 2).delete()
    db.commit()

    assert get_day_hours(db, shop.id, 2) == DayHours.closed(2)
    assert get_week(db, shop.id)[2] == DayHours.default(2)


def test_add_day_off_rejects_duplicate_date(db, shop) -> None:
    add_day_off(db, shop.id, date(2026, 1, 5), ' Feriado ')

    with pytest.raises(DuplicateDayOff):
        add_day_off(db, shop.id, date(2026, 1, 5))

    rows = list_days_off(db, shop.id)
    assert [(row.date, row.reason) for row in rows] == [(date(2026, 1, 5), 'Feriado')]


def test_add_day_off_range_skips_existing_dates(db, shop) -> None:
    add_day_off(db, shop.id, date(2026, 2, 3), 'Inventario')

    created = add_day_off_range(db, shop.id, date(2026, 2, 2), date(2026, 2, 5), 'Vacaciones')

    assert [row.date for row in created] == [date(2026, 2, 2), date(2026, 2, 4), date(2026, 2, 5)]
    assert db.query(DayOff).filter(DayOff.business_id == shop.id).count() == 4


def test_add_day_off_range_rejects_inverted_range(db, shop) -> None:
    with pytest.raises(ConfigurationError):
        add_day_off_range(db, shop.id, date(2026, 2, 5), date(2026, 2, 2))


def test_day_off_ranges_are_grouped_on_read(db, shop) -> None:
    add_day_off_range(db, shop.id, date(2026, 2, 2), date(2026, 2, 4), 'Vacaciones')
    add_day_off(db, shop.id, date(2026, 2, 5), 'Feriado')

    groups = list_day_off_ranges(db, shop.id)

    assert [(group.start, group.end, group.reason) for group in groups] == [
        (date(2026, 2, 2), date(2026, 2, 4), 'Vacaciones'),
        (date(2026, 2, 5), date(2026, 2, 5), 'Feriado'),
    ]


def test_delete_day_off_group_removes_only_that_run(db, shop) -> None:
    add_day_off_range(db, shop.id, date(2026, 2, 2), date(2026, 2, 4), 'Vacaciones')
    add_day_off(db, shop.id, date(2026, 2, 5), 'Feriado')

    deleted = delete_day_off_group(db, shop.id, date(2026, 2, 3))

    assert deleted.dates == (date(2026, 2, 2), date(2026, 2, 3), date(2026, 2, 4))
    assert [row.date for row in list_days_off(db, shop.id)] == [date(2026, 2, 5)]

    with pytest.raises(DayOffNotFound):
        delete_day_off_group(db, shop.id, date(2026, 2, 3))


def test_delete_day_off_by_id(db, shop) -> None:
    day_off = add_day_off(db, shop.id, date(2026, 2, 9))

    delete_day_off(db, shop.id, day_off.id)

    assert list_days_off(db, shop.id) == []
    with pytest.raises(DayOffNotFound):
        delete_day_off(db, shop.id, day_off.id)


def test_business_without_services_books_the_general_offering(db, shop) -> None:
    assert list_offerings(db, shop.id, TODAY) == [GeneralService()]
    assert resolve_offering(db, shop.id, None, TODAY) == GeneralService()


def test_service_must_be_chosen_once_services_exist(db, shop) -> None:
    service = create_service(db, shop.id, name='Corte', duration=45, price=1500, available_days=[0, 1, 2])

    with pytest.raises(ServiceRequired):
        resolve_offering(db, shop.id, None, TODAY)

    offering = resolve_offering(db, shop.id, service.id, TODAY)
    assert isinstance(offering, Offering)
    assert offering.duration == 45
    assert offering.available_days == frozenset({0, 1, 2})


def test_expired_and_deactivated_services_fall_back_to_general(db, shop) -> None:
    expired = create_service(db, shop.id, name='Promo', duration=30, end_date=date(2025, 12, 31))
    retired = create_service(db, shop.id, name='Color', duration=60)
    deactivate_service(db, shop.id, retired.id)

    assert list_offerings(db, shop.id, TODAY) == [GeneralService()]
    with pytest.raises(ServiceNotFound):
        resolve_offering(db, shop.id, expired.id, TODAY)


@pytest.mark.parametrize(
    'fields',
    [
        {'name': ' ', 'duration': 30},
        {'name': 'Corte', 'duration': 0},
        {'name': 'Corte', 'duration': 30, 'price': -1},
        {'name': 'Corte', 'duration': 30, 'available_days': []},
        {'name': 'Corte', 'duration': 30, 'available_days': [7]},
        {'name': 'Corte', 'duration': 30, 'start_date': date(2026, 2, 1), 'end_date': date(2026, 1, 1)},
    ],
)
def test_create_service_rejects_invalid_fields(db, shop, fields) -> None:
    with pytest.raises(ConfigurationError):
        create_service(db, shop.id, **fields)


def test_update_service_keeps_unchanged_fields(db, shop) -> None:
    service = create_service(db, shop.id, name='Corte', duration=30, price=1000, available_days=[5, 6])

    updated = update_service(db, shop.id, service.id, duration=40)

    assert updated.duration == 40
    assert updated.name == 'Corte'
    assert updated.available_days == [5, 6]


def test_capacity_change_is_owner_only(db, shop) -> None:
    with pytest.raises(OwnerOnly):
        update_capacity(db, shop.id, 'someone@example.com', allow_multiple=True, max_per_slot=3)

    policy = update_capacity(db, shop.id, OWNER_EMAIL.upper(), allow_multiple=True, max_per_slot=3)

    assert policy.effective_max == 3


def test_capacity_without_multiple_appointments_is_stored_as_one(db, shop) -> None:
    update_capacity(db, shop.id, OWNER_EMAIL, allow_multiple=True, max_per_slot=3)

    policy = update_capacity(db, shop.id, OWNER_EMAIL, allow_multiple=False, max_per_slot=3)

    assert policy.effective_max == 1
    assert shop.allow_multiple_appointments is False
    assert shop.max_appointments_per_slot == 1


@pytest.mark.parametrize('max_per_slot', [0, 101])
def test_capacity_with_multiple_appointments_must_be_in_range(db, shop, max_per_slot) -> None:
    with pytest.raises(ConfigurationError):
        update_capacity(db, shop.id, OWNER_EMAIL, allow_multiple=True, max_per_slot=max_per_slot)


def test_closed_day_stays_closed_after_week_update(db, shop) -> None:
    week = weekdays_open_week()
    week[0] = replace(week[0], enabled=False)

    replace_week(db, shop.id, week)

    assert get_day_hours(db, shop.id, 0).enabled is False
