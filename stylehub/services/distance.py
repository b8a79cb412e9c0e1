"""Great-circle distance."""

import math

from stylehub.models.geo import Coordinate

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Return great-circle distance in miles between two coordinates."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Floating-point overshoot near antipodal points can push sqrt(h) past 1.
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(h)))
