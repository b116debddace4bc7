"""
Booking Domain Models

Consultation appointments. Independent of inventory.
"""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.core.honeypot import HoneypotFields
from storefront.domain.validation import TIME_SLOT_PATTERN, clean_phone, clean_required_text, clean_text

# Bookings can be made at most this far ahead
BOOKING_HORIZON_DAYS = 365


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    project_type: Optional[str] = None
    budget: Optional[str] = None
    message: Optional[str] = None
    date: dt.date
    time_slot: str
    status: BookingStatus = BookingStatus.PENDING
    internal_notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class BookingRequest(HoneypotFields):
    """Public booking form"""

    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, min_length=6, max_length=50)
    date: dt.date
    time_slot: str = Field(..., min_length=5, max_length=5)
    project_type: Optional[str] = Field(None, max_length=100)
    budget: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("full_name")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return clean_required_text(value)

    @field_validator("phone")
    @classmethod
    def _clean_phone(cls, value: Optional[str]) -> Optional[str]:
        return clean_phone(value)

    @field_validator("project_type", "budget", "message")
    @classmethod
    def _clean_optional(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value)

    @field_validator("time_slot")
    @classmethod
    def _check_time_slot(cls, value: str) -> str:
        if not TIME_SLOT_PATTERN.match(value):
            raise ValueError("must be in HH:MM format")
        return value

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: dt.date) -> dt.date:
        today = dt.date.today()
        if value < today:
            raise ValueError("cannot be in the past")
        if value > today + dt.timedelta(days=BOOKING_HORIZON_DAYS):
            raise ValueError("cannot be more than one year ahead")
        return value


class BookingUpdateRequest(BaseModel):
    status: Optional[BookingStatus] = None
    internal_notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value):
        return value.strip().lower() if isinstance(value, str) else value
