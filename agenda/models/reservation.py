"""Reservation model definitions."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Time,
    UniqueConstraint,
)

from agenda.database import Base

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)
RESERVATION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Reservation(Base):
    """A client's booking of one slot.

    ``seat`` numbers the active reservations of a slot from 1 up to the
    business capacity. The unique (business, date, time, seat) constraint
    is what stops two concurrent writers from both taking the last place;
    cancelled rows carry ``seat = NULL`` and never collide.
    """
    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("business_id", "date", "time", "seat", name="uq_reservations_slot_seat"),
        Index("idx_reservations_business_date", "business_id", "date", "status"),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)
    service_name = Column(String, nullable=False)
    service_price = Column(Numeric(10, 2), nullable=False, default=0)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    seat = Column(Integer, nullable=True)
    booking_token = Column(String(36), nullable=False, unique=True)
    client_name = Column(String, nullable=False)
    client_email = Column(String)
    client_phone = Column(String)
    notes = Column(String)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
