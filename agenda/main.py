import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from agenda.core import config
from agenda.database import Base, engine, ensure_reservation_schema, ensure_service_schema
from agenda.models import branch, business, day_off, reservation, schedule, service  # noqa: F401
from agenda.routes import (
    availability_routes,
    branch_routes,
    business_routes,
    reservation_routes,
    schedule_routes,
    service_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Agenda Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_reservation_schema()
        ensure_service_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Agenda Booking API Running'}


app.include_router(business_routes.router, prefix='/businesses')
app.include_router(branch_routes.router, prefix='/businesses')
app.include_router(availability_routes.router, prefix='/businesses')
app.include_router(reservation_routes.router, prefix='/businesses')
app.include_router(schedule_routes.router, prefix='/businesses')
app.include_router(service_routes.router, prefix='/businesses')
