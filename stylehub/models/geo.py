"""Geographic value objects."""

import math
from typing import Optional

from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """WGS84 point."""
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")

    @staticmethod
    def is_valid(lat: Optional[float], lng: Optional[float]) -> bool:
        """True when both values are present, finite and in range."""
        if lat is None or lng is None:
            return False
        try:
            lat_f = float(lat)
            lng_f = float(lng)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
            return False
        return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


class SearchOrigin(BaseModel):
    """Per-request proximity search origin. Never persisted."""
    coordinate: Coordinate
    radius_miles: float = Field(..., gt=0, description="Search radius in miles (inclusive)")


class BoundingBox(BaseModel):
    """Axis-aligned lat/lng box in provider viewbox order."""
    left: float = Field(..., ge=-180.0, le=180.0, description="Western longitude")
    top: float = Field(..., ge=-90.0, le=90.0, description="Northern latitude")
    right: float = Field(..., ge=-180.0, le=180.0, description="Eastern longitude")
    bottom: float = Field(..., ge=-90.0, le=90.0, description="Southern latitude")

    def as_viewbox(self) -> str:
        return f"{self.left},{self.top},{self.right},{self.bottom}"


class AddressRecord(BaseModel):
    """Normalized geocoder output."""
    street: Optional[str] = Field(None, description="House number and road")
    city: Optional[str] = Field(None, description="Municipal-level place name")
    county: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = Field(None, description="Upper-cased ISO country code")
    display_name: Optional[str] = Field(None, description="Provider display address")
    coordinate: Optional[Coordinate] = None
