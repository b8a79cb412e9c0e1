"""Geocoding endpoint: ``?search=<text>`` forward, ``?lat=&lng=`` reverse."""

from stylehub.models.geo import Coordinate
from stylehub.services.geocoder import GeocoderGateway
from stylehub.utils.errors import InvalidRequest
from stylehub.utils.http import JSONRequestHandler


class handler(JSONRequestHandler):
    route_name = "geocode"

    def do_GET(self):
        self.respond(self._lookup)

    async def _lookup(self):
        params = self.query
        gateway = GeocoderGateway()

        search = (params.get("search") or "").strip()
        if search:
            return {"result": await gateway.forward(search)}

        if "lat" in params and "lng" in params:
            try:
                lat, lng = float(params["lat"]), float(params["lng"])
            except ValueError:
                raise InvalidRequest("lat and lng must be numbers")
            if not Coordinate.is_valid(lat, lng):
                raise InvalidRequest("lat/lng out of range")
            return {"result": await gateway.reverse(Coordinate(lat=lat, lng=lng))}

        raise InvalidRequest("Provide search or lat and lng")
