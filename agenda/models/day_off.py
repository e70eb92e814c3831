"""Day-off model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint

from agenda.database import Base


class DayOff(Base):
    """A single calendar day on which the business is closed."""
    __tablename__ = "days_off"
    __table_args__ = (UniqueConstraint("business_id", "date", name="uq_days_off_business_date"),)

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String)
