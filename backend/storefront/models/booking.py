"""
Reservas de citas de consultoría
"""
from sqlalchemy import Column, Date, DateTime, String, Text
from sqlalchemy.sql import func

from storefront.core.database import Base
from storefront.models.catalog import generate_id, utcnow


class Booking(Base):
    """
    Independent aggregate, no inventory coupling
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))
    project_type = Column(String(100))
    budget = Column(String(100))
    message = Column(Text)

    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(5), nullable=False)
    # "YYYY-MM-DD HH:MM" while the booking holds its slot exclusively; NULL otherwise
    slot_key = Column(String(16), unique=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    internal_notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)
