"""User and profile models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Marketplace account."""
    user_id: str = Field(..., description="User ID (text)")
    email: Optional[str] = Field(None, description="Email address")
    name: Optional[str] = Field(None, description="Display name")
    username: Optional[str] = None
    role: Optional[Literal["talent", "employer", "admin"]] = Field(
        None,
        description="Declared role chosen at registration"
    )
    created_at: Optional[str] = None


class UserSummary(BaseModel):
    """User fields embedded in inbox rows."""
    user_id: str
    name: Optional[str] = None
    username: Optional[str] = None


class BusinessProfile(BaseModel):
    """Employer-side profile; older listings reference it instead of a user."""
    profile_id: str = Field(..., description="Business profile ID (text)")
    user_id: Optional[str] = Field(None, description="Owning user ID")
    shop_name: Optional[str] = None
    created_at: Optional[str] = None


class TalentProfile(BaseModel):
    """Talent-side profile."""
    profile_id: str = Field(..., description="Talent profile ID (text)")
    user_id: str = Field(..., description="Owning user ID")
    roles: list[str] = Field(default_factory=list, description="Services offered")
    zip_code: Optional[str] = None
    travel_radius_miles: Optional[int] = None
