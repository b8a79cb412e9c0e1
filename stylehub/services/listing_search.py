"""Listing search: attribute filters, origin resolution and proximity ranking."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from stylehub.models.geo import AddressRecord, Coordinate, SearchOrigin
from stylehub.models.listing import Listing, NearbyListing
from stylehub.services.geocoder import GeocoderGateway
from stylehub.services.proximity import rank_by_distance
from stylehub.services.supabase_client import get_active_listings
from stylehub.utils.config import SearchSettings
from stylehub.utils.errors import GeocodeNotFound, GeocodeUnavailable
from stylehub.utils.logging import get_structured_logger, sanitize_message_text, timed

logger = get_structured_logger(__name__)

NO_RESULTS_NEAR_ADDRESS = "No results near that address"

_POSTED_WINDOWS = {"24h": timedelta(days=1), "7d": timedelta(days=7), "30d": timedelta(days=30)}


class ListingSearch(BaseModel):
    """Search request as sent by the jobs page."""
    address: Optional[str] = Field(None, max_length=200, description="Free-text origin address")
    lat: Optional[float] = Field(None, ge=-90.0, le=90.0, description="Device or map-picked origin")
    lng: Optional[float] = Field(None, ge=-180.0, le=180.0)
    radius_miles: Optional[float] = Field(None, gt=0, le=100)
    role: Optional[str] = None
    schedule: Optional[str] = Field(None, description="full_time, part_time or any")
    employment_type: Optional[str] = None
    comp_model: Optional[str] = None
    apprentice_friendly: bool = False
    posted: Optional[Literal["24h", "7d", "30d"]] = None
    q: Optional[str] = Field(None, max_length=100, description="Text match on title or business name")

    @model_validator(mode="after")
    def _lat_lng_pair(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be given together")
        return self


class SearchResult(BaseModel):
    listings: list[NearbyListing] = Field(default_factory=list)
    origin: Optional[SearchOrigin] = None
    resolved_address: Optional[AddressRecord] = None
    geocode_failed: bool = False
    notice: Optional[str] = None


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def matches_filters(listing: Listing, params: ListingSearch, now: datetime) -> bool:
    """Attribute filters applied before any distance work."""
    if params.role and listing.role != params.role:
        return False
    if params.schedule and params.schedule != "any" and listing.schedule != params.schedule:
        return False
    if params.employment_type and listing.employment_type != params.employment_type:
        return False
    if params.comp_model and listing.comp_model != params.comp_model:
        return False
    if params.apprentice_friendly and not listing.apprentice_friendly:
        return False
    if params.posted:
        if listing.created_at is None:
            return False
        if _aware(now) - _aware(listing.created_at) > _POSTED_WINDOWS[params.posted]:
            return False
    if params.q:
        needle = params.q.strip().lower()
        haystack = f"{listing.title or ''} {listing.business_name or ''}".lower()
        if needle and needle not in haystack:
            return False
    return True


async def resolve_origin(
    params: ListingSearch,
    gateway: Optional[GeocoderGateway],
    settings: SearchSettings,
) -> tuple[Optional[SearchOrigin], Optional[AddressRecord]]:
    """Build the search origin. Geocode errors propagate to the caller."""
    radius = params.radius_miles or settings.default_radius_miles
    if radius >= settings.unlimited_radius_miles:
        return None, None

    if params.lat is not None and params.lng is not None:
        coordinate = Coordinate(lat=params.lat, lng=params.lng)
        return SearchOrigin(coordinate=coordinate, radius_miles=radius), None

    if params.address and params.address.strip():
        gateway = gateway or GeocoderGateway()
        record = await gateway.forward(params.address)
        if record.coordinate is None:
            raise GeocodeNotFound("Geocoder returned no coordinate")
        return SearchOrigin(coordinate=record.coordinate, radius_miles=radius), record

    return None, None


@timed("search_listings")
async def search_listings(
    params: ListingSearch,
    candidates: Iterable[Listing],
    gateway: Optional[GeocoderGateway] = None,
    settings: Optional[SearchSettings] = None,
    now: Optional[datetime] = None,
) -> SearchResult:
    """Filter and order candidates (assumed newest first) for a search request.

    Without an origin, or when the address cannot be geocoded, results keep
    the candidates' recency order.
    """
    settings = settings or SearchSettings.from_env()
    now = now or datetime.now(timezone.utc)
    filtered = [listing for listing in candidates if matches_filters(listing, params, now)]

    try:
        origin, record = await resolve_origin(params, gateway, settings)
    except (GeocodeNotFound, GeocodeUnavailable) as exc:
        logger.info(
            "Search origin unresolved, falling back to recency order",
            address=sanitize_message_text(params.address, max_length=100),
            reason=type(exc).__name__,
        )
        return SearchResult(
            listings=[NearbyListing(listing=listing) for listing in filtered],
            geocode_failed=True,
            notice=NO_RESULTS_NEAR_ADDRESS,
        )

    if origin is None:
        return SearchResult(listings=[NearbyListing(listing=listing) for listing in filtered])

    ranked = rank_by_distance(origin, filtered)
    return SearchResult(
        listings=[NearbyListing(listing=listing, distance_miles=round(miles, 2)) for listing, miles in ranked],
        origin=origin,
        resolved_address=record,
    )


async def load_active_listings() -> list[Listing]:
    """Every active listing in the store, newest first."""
    rows = await get_active_listings()
    return [Listing.model_validate(row) for row in rows]
