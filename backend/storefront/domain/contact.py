"""
Contact form messages and quote requests sent from the storefront
"""
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.core.honeypot import HoneypotFields
from storefront.domain.validation import clean_phone, clean_required_text, clean_text


class ContactMessage(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    project_type: Optional[str] = None
    budget: Optional[str] = None
    message: str
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class ContactRequest(HoneypotFields):
    """Public contact form"""

    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, min_length=6, max_length=50)
    project_type: Optional[str] = Field(None, max_length=100)
    budget: Optional[str] = Field(None, max_length=100)
    message: str = Field(..., min_length=10, max_length=5000)

    @field_validator("first_name", "last_name", "message")
    @classmethod
    def _clean_required(cls, value: str) -> str:
        return clean_required_text(value)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("phone")
    @classmethod
    def _clean_phone(cls, value: Optional[str]) -> Optional[str]:
        return clean_phone(value)

    @field_validator("project_type", "budget")
    @classmethod
    def _clean_optional(cls, value: Optional[str]) -> Optional[str]:
        return clean_text(value)
