"""Service catalog model definitions."""

from sqlalchemy import JSON, Boolean, Column, Date, ForeignKey, Integer, Numeric, String

from agenda.database import Base

ALL_WEEKDAYS = [0, 1, 2, 3, 4, 5, 6]


class Service(Base):
    """A named offering with its own duration and booking restrictions."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    available_days = Column(JSON, nullable=False, default=lambda: list(ALL_WEEKDAYS))
    start_date = Column(Date)
    end_date = Column(Date)
    active = Column(Boolean, nullable=False, default=True)
    auto_confirm = Column(Boolean, nullable=False, default=False)
    # Branch ids the service is offered at; NULL or empty means every branch.
    branches_available = Column(JSON, nullable=True)
