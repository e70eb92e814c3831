"""Weekly schedule model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Time, UniqueConstraint

from agenda.database import Base


class DaySchedule(Base):
    """Working hours for one weekday (0 = Monday) of a business."""
    __tablename__ = "schedules"
    __table_args__ = (UniqueConstraint("business_id", "day", name="uq_schedules_business_day"),)

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    day = Column(Integer, nullable=False)
    enabled = Column(Boolean, nullable=False, default=False)
    is_continuous = Column(Boolean, nullable=False, default=True)
    start_time = Column(Time)
    end_time = Column(Time)
    morning_start = Column(Time)
    morning_end = Column(Time)
    afternoon_start = Column(Time)
    afternoon_end = Column(Time)
    slot_duration = Column(Integer, nullable=False, default=30)
