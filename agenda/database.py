from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from agenda.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # SQLite sessions are shared across FastAPI worker threads.
        return {"check_same_thread": False, "timeout": config.DATABASE_TIMEOUT_SECONDS}
    if database_url.startswith("postgresql"):
        timeout_ms = int(config.DATABASE_TIMEOUT_SECONDS * 1000)
        return {"options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}"}
    return {}


def build_engine(database_url: str):
    created = create_engine(
        database_url,
        connect_args=_connect_args(database_url),
        echo=config.DATABASE_ECHO,
    )

    if database_url.startswith("sqlite"):
        @event.listens_for(created, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return created


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_reservation_schema_checked = False
_service_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_reservation_schema() -> None:
    global _reservation_schema_checked

    if _reservation_schema_checked:
        return

    with _schema_lock:
        if _reservation_schema_checked:
            return

        inspector = inspect(engine)

        if 'reservations' not in inspector.get_table_names():
            _reservation_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('reservations')}
        migration_steps = [
            ('seat', 'ALTER TABLE reservations ADD COLUMN seat INTEGER'),
            ('booking_token', 'ALTER TABLE reservations ADD COLUMN booking_token VARCHAR(36)'),
            ('notes', 'ALTER TABLE reservations ADD COLUMN notes VARCHAR'),
            ('branch_id', 'ALTER TABLE reservations ADD COLUMN branch_id INTEGER REFERENCES branches(id)'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_reservations_slot_seat '
                    'ON reservations(business_id, date, time, seat)'
                )
            )
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_reservations_booking_token ON reservations(booking_token)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_reservations_business_date ON reservations(business_id, date, status)')
            )

        _reservation_schema_checked = True


def ensure_service_schema() -> None:
    global _service_schema_checked

    if _service_schema_checked:
        return

    with _schema_lock:
        if _service_schema_checked:
            return

        inspector = inspect(engine)

        if 'services' not in inspector.get_table_names():
            _service_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('services')}
        migration_steps = [
            ('available_days', 'ALTER TABLE services ADD COLUMN available_days JSON'),
            ('start_date', 'ALTER TABLE services ADD COLUMN start_date DATE'),
            ('end_date', 'ALTER TABLE services ADD COLUMN end_date DATE'),
            ('auto_confirm', 'ALTER TABLE services ADD COLUMN auto_confirm BOOLEAN DEFAULT FALSE'),
            ('branches_available', 'ALTER TABLE services ADD COLUMN branches_available JSON'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))

        _service_schema_checked = True
