"""
Mensajes del formulario de contacto
"""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from storefront.core.database import Base
from storefront.models.catalog import generate_id, utcnow


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=generate_id)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))
    project_type = Column(String(100))
    budget = Column(String(100))
    message = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
