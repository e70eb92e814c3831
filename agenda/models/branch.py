"""Branch model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from agenda.database import Base


class Branch(Base):
    """An additional location where a business attends clients."""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    address = Column(String)
    city = Column(String)
    province = Column(String)
    phone = Column(String)
    email = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
