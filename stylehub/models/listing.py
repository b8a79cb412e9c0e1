"""Listing models."""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from stylehub.models.geo import Coordinate


class DirectOwnership(BaseModel):
    """Listing owned directly by a user (current schema)."""
    kind: Literal["direct"] = "direct"
    owner_id: str


class ProfileOwnership(BaseModel):
    """Listing owned through a business profile (older rows)."""
    kind: Literal["profile"] = "profile"
    business_profile_id: str


ListingOwnership = Union[DirectOwnership, ProfileOwnership]


class Listing(BaseModel):
    """Job or booth posting created by a business. Read-only to the core."""
    listing_id: str = Field(..., description="Listing ID (text)")
    title: Optional[str] = Field(None, description="Posting title")
    business_name: Optional[str] = Field(None, description="Business display name")
    role: Optional[str] = Field(None, description="barber, cosmetologist, esthetician, nail_tech, ...")
    schedule: Optional[str] = Field(None, description="full_time or part_time")
    employment_type: Optional[str] = Field(None, description="w2 or c1099")
    comp_model: Optional[str] = Field(None, description="booth_rent, commission, hourly, hybrid")
    apprentice_friendly: bool = Field(default=False)
    status: str = Field(default="ACTIVE", description="ACTIVE, PAUSED, CLOSED")
    owner_id: Optional[str] = Field(None, description="Direct owning user ID")
    business_profile_id: Optional[str] = Field(None, description="Owning business profile ID")
    lat: Optional[float] = None
    lng: Optional[float] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        """Embedded coordinate, or None when missing or out of range."""
        if not Coordinate.is_valid(self.lat, self.lng):
            return None
        return Coordinate(lat=self.lat, lng=self.lng)

    def ownership_shapes(self) -> list[ListingOwnership]:
        """Ownership references present on this row, highest priority first."""
        shapes: list[ListingOwnership] = []
        if self.owner_id:
            shapes.append(DirectOwnership(owner_id=self.owner_id))
        if self.business_profile_id:
            shapes.append(ProfileOwnership(business_profile_id=self.business_profile_id))
        return shapes


class ListingSummary(BaseModel):
    """Listing fields embedded in inbox rows."""
    listing_id: str
    title: Optional[str] = None
    business_name: Optional[str] = None


class NearbyListing(BaseModel):
    """Search result row."""
    listing: Listing
    distance_miles: Optional[float] = Field(None, description="Distance from the search origin")
