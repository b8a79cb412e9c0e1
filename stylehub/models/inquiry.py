"""Inquiry models."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class Inquiry(BaseModel):
    """Deduplicated contact record from a talent to a listing's owner."""
    inquiry_id: str = Field(..., description="Inquiry ID (text)")
    sender_id: str = Field(..., description="Sending user ID")
    listing_id: str = Field(..., description="Listing ID")
    owner_id: Optional[str] = Field(None, description="Resolved owner at submission (null on legacy rows)")
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InquiryCreate(BaseModel):
    """Send-inquiry payload."""
    listing_id: str = Field(..., min_length=1, description="Listing being contacted")
    name: str = Field(..., min_length=1, max_length=25)
    phone: str = Field(..., min_length=7, max_length=32, description="Formatted or bare, must contain 10 digits")
    email: Optional[EmailStr] = None
    note: Optional[str] = Field(None, max_length=200)

    @field_validator("name", "listing_id", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def _ten_digits(cls, value: str) -> str:
        if len(re.sub(r"\D", "", value)) != 10:
            raise ValueError("Phone must contain 10 digits")
        return value

    @field_validator("email", "note", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def contact_fields(self) -> dict:
        """Columns rewritten on every (re)submission."""
        return {
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "note": self.note,
        }
