"""Business model definitions."""

from sqlalchemy import Boolean, Column, Integer, String

from agenda.core import config
from agenda.database import Base


class Business(Base):
    """A service business that publishes hours and accepts reservations."""
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    owner_email = Column(String, nullable=False, index=True)
    timezone = Column(String, nullable=False, default=config.DEFAULT_TIMEZONE)
    allow_multiple_appointments = Column(Boolean, nullable=False, default=False)
    max_appointments_per_slot = Column(Integer, nullable=False, default=1)
    temporarily_closed = Column(Boolean, nullable=False, default=False)
