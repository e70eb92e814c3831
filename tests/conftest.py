import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from agenda.database import Base  # noqa: E402
from agenda.models import branch, business, day_off, reservation, schedule, service  # noqa: E402,F401
from agenda.services.businesses import create_business  # noqa: E402
from agenda.services.schedule_store import replace_week  # noqa: E402
from schedule_factories import OWNER_EMAIL, weekdays_open_week  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def shop(db):
    created = create_business(db, name='Barbería Centro', owner_email=OWNER_EMAIL, timezone='UTC')
    replace_week(db, created.id, weekdays_open_week())
    return created
