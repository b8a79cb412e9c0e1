"""Proximity filter: radius search over listings by linear scan.

Candidates are first checked against a conservative lat/lng window around the
origin (cheap comparisons only), then measured with the haversine formula.
The window never excludes a point that is within the radius; it only saves
trigonometry on far-away rows.
"""

import math
from typing import Iterable, Optional

from pydantic import BaseModel

from stylehub.models.geo import Coordinate, SearchOrigin
from stylehub.models.listing import Listing
from stylehub.services.distance import EARTH_RADIUS_MILES, haversine_miles
from stylehub.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

_WINDOW_PAD_DEGREES = 1e-9


def longitude_delta(a: float, b: float) -> float:
    """Absolute longitude difference in degrees, across the antimeridian."""
    return abs((a - b + 540.0) % 360.0 - 180.0)


class SearchWindow(BaseModel):
    """Lat band plus optional longitude half-width around the origin."""
    min_lat: float
    max_lat: float
    center_lng: float
    lng_half_width: Optional[float] = None  # None: every longitude

    def contains(self, point: Coordinate) -> bool:
        if point.lat < self.min_lat or point.lat > self.max_lat:
            return False
        if self.lng_half_width is None:
            return True
        return longitude_delta(point.lng, self.center_lng) <= self.lng_half_width


def bounding_window(origin: SearchOrigin) -> SearchWindow:
    """Smallest lat/lng window guaranteed to contain the search circle."""
    center = origin.coordinate
    angular = origin.radius_miles / EARTH_RADIUS_MILES
    if angular >= math.pi:
        return SearchWindow(min_lat=-90.0, max_lat=90.0, center_lng=center.lng)

    lat_pad = math.degrees(angular) + _WINDOW_PAD_DEGREES
    min_lat = center.lat - lat_pad
    max_lat = center.lat + lat_pad

    # Circle reaches a pole: every longitude is in range.
    if min_lat <= -90.0 or max_lat >= 90.0:
        return SearchWindow(min_lat=max(min_lat, -90.0), max_lat=min(max_lat, 90.0), center_lng=center.lng)

    ratio = math.sin(angular) / math.cos(math.radians(center.lat))
    half_width = None if ratio >= 1.0 else math.degrees(math.asin(ratio)) + _WINDOW_PAD_DEGREES
    return SearchWindow(min_lat=min_lat, max_lat=max_lat, center_lng=center.lng, lng_half_width=half_width)


def rank_by_distance(
    origin: SearchOrigin,
    candidates: Iterable[Listing],
    prefilter: bool = True,
) -> list[tuple[Listing, float]]:
    """Listings within the radius (inclusive) with their distance, nearest first.

    Listings without a valid coordinate are dropped. Equal distances keep
    input order.
    """
    window = bounding_window(origin) if prefilter else None
    ranked: list[tuple[Listing, float]] = []
    scanned = 0
    skipped_no_coordinate = 0

    for listing in candidates:
        scanned += 1
        point = listing.coordinate
        if point is None:
            skipped_no_coordinate += 1
            continue
        if window is not None and not window.contains(point):
            continue
        miles = haversine_miles(origin.coordinate, point)
        if miles <= origin.radius_miles:
            ranked.append((listing, miles))

    ranked.sort(key=lambda pair: pair[1])

    logger.debug(
        "Proximity filter applied",
        radius_miles=origin.radius_miles,
        scanned=scanned,
        matched=len(ranked),
        skipped_no_coordinate=skipped_no_coordinate,
    )
    return ranked


def filter_by_proximity(origin: Optional[SearchOrigin], candidates: Iterable[Listing]) -> list[Listing]:
    """Listings within ``origin``'s radius sorted nearest first.

    Without an origin the candidates pass through in caller order.
    """
    if origin is None:
        return list(candidates)
    return [listing for listing, _ in rank_by_distance(origin, candidates)]
