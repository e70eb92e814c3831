from datetime import date, timedelta

import pytest

ROUTE_MODULES = (
    'agenda.routes.availability_routes',
    'agenda.routes.branch_routes',
    'agenda.routes.business_routes',
    'agenda.routes.reservation_routes',
    'agenda.routes.schedule_routes',
    'agenda.routes.service_routes',
)


@pytest.fixture(autouse=True)
def database_ready(monkeypatch):
    for module in ROUTE_MODULES:
        monkeypatch.setattr(f'{module}.ensure_database_ready', lambda: None)


def upcoming(weekday: int) -> date:
    """A date at least a week ahead that falls on ``weekday``."""
    today = date.today()
    return today + timedelta(days=7 + (weekday - today.weekday()) % 7)


@pytest.fixture
def next_monday() -> date:
    return upcoming(0)
