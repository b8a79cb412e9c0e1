"""Environment-driven settings for the geocoder and listing search."""

import os
from typing import Optional

from pydantic import BaseModel, Field

from stylehub.models.geo import BoundingBox


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_viewbox(raw: Optional[str]) -> Optional[BoundingBox]:
    """Parse a ``left,top,right,bottom`` string; empty disables the box."""
    if not raw or not raw.strip():
        return None
    parts = [float(p) for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError(f"viewbox needs 4 comma-separated numbers, got {raw!r}")
    left, top, right, bottom = parts
    return BoundingBox(left=left, top=top, right=right, bottom=bottom)


class GeocoderSettings(BaseModel):
    """Geocoding provider settings."""
    base_url: str = Field("https://nominatim.openstreetmap.org", description="Provider root URL")
    user_agent: str = Field("StyleHub/0.1", description="User-Agent sent to the provider")
    timeout_seconds: float = Field(5.0, gt=0, description="Bound on a single provider call")
    region_hint: Optional[str] = Field(
        "San Diego County, CA",
        description="Appended to forward queries that do not already name the region"
    )
    viewbox: Optional[BoundingBox] = Field(
        default_factory=lambda: BoundingBox(left=-117.60, top=33.50, right=-116.08, bottom=32.50),
        description="Forward search bounding box (left, top, right, bottom)"
    )
    country_codes: Optional[str] = Field("us", description="Provider countrycodes restriction")
    prefer_neighborhood: bool = Field(
        True,
        description="Let a suburb/neighbourhood replace an umbrella city name"
    )
    umbrella_cities: list[str] = Field(
        default_factory=lambda: ["San Diego"],
        description="City names large enough that a neighborhood is more precise"
    )

    @classmethod
    def from_env(cls) -> "GeocoderSettings":
        return cls(
            base_url=os.environ.get("GEOCODER_BASE_URL", "https://nominatim.openstreetmap.org").rstrip("/"),
            user_agent=os.environ.get("GEOCODER_USER_AGENT", "StyleHub/0.1"),
            timeout_seconds=float(os.environ.get("GEOCODER_TIMEOUT_SECONDS", "5.0")),
            region_hint=os.environ.get("GEOCODER_REGION_HINT", "San Diego County, CA") or None,
            viewbox=parse_viewbox(os.environ.get("GEOCODER_VIEWBOX", "-117.60,33.50,-116.08,32.50")),
            country_codes=os.environ.get("GEOCODER_COUNTRY_CODES", "us") or None,
            prefer_neighborhood=_env_bool("GEOCODER_PREFER_NEIGHBORHOOD", "true"),
            umbrella_cities=_env_list("GEOCODER_UMBRELLA_CITIES", "San Diego"),
        )


class SearchSettings(BaseModel):
    """Listing search defaults."""
    default_radius_miles: float = Field(15.0, gt=0)
    unlimited_radius_miles: float = Field(
        45.0,
        gt=0,
        description="Radius at or above which no distance limit applies"
    )

    @classmethod
    def from_env(cls) -> "SearchSettings":
        return cls(
            default_radius_miles=float(os.environ.get("SEARCH_DEFAULT_RADIUS_MILES", "15")),
            unlimited_radius_miles=float(os.environ.get("SEARCH_UNLIMITED_RADIUS_MILES", "45")),
        )
