"""Geocoder gateway over the Nominatim search/reverse API.

One bounded attempt per call; provider trouble surfaces as
``GeocodeUnavailable`` and empty results as ``GeocodeNotFound`` so callers can
degrade instead of failing the request.

Usage::

    gateway = GeocoderGateway()
    record = await gateway.forward("1200 Garnet Ave")
    record = await gateway.reverse(Coordinate(lat=32.7157, lng=-117.1611))
"""

import asyncio
import re
from typing import Any, Iterable, Optional

import httpx

from stylehub.models.geo import AddressRecord, Coordinate
from stylehub.utils.config import GeocoderSettings
from stylehub.utils.errors import GeocodeNotFound, GeocodeUnavailable
from stylehub.utils.logging import get_structured_logger, log_timing, sanitize_message_text

logger = get_structured_logger(__name__)

CITY_FIELDS = ("municipality", "city", "town", "village", "locality", "hamlet")
NEIGHBORHOOD_FIELDS = ("suburb", "neighbourhood", "quarter")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def pick_city(
    address: dict,
    prefer_neighborhood: bool = True,
    umbrella_cities: Iterable[str] = ("San Diego",),
) -> Optional[str]:
    """Municipal-level place name from a provider address block.

    With ``prefer_neighborhood`` a suburb/neighbourhood replaces an empty city
    or one of the ``umbrella_cities`` (e.g. "Pacific Beach" over "San Diego").
    """
    city = next((c for c in (_clean(address.get(f)) for f in CITY_FIELDS) if c), None)
    if not prefer_neighborhood:
        return city

    umbrellas = {u.strip().lower() for u in umbrella_cities}
    if city is None or city.lower() in umbrellas:
        neighborhood = next((n for n in (_clean(address.get(f)) for f in NEIGHBORHOOD_FIELDS) if n), None)
        if neighborhood:
            return neighborhood
    return city


def normalize_address(
    address: Optional[dict],
    settings: GeocoderSettings,
    coordinate: Optional[Coordinate] = None,
    display_name: Optional[str] = None,
) -> AddressRecord:
    """Map a provider address block onto an AddressRecord. Missing fields become None."""
    address = address or {}
    street = " ".join(p for p in (_clean(address.get("house_number")), _clean(address.get("road"))) if p)
    country_code = _clean(address.get("country_code"))
    return AddressRecord(
        street=street or None,
        city=pick_city(address, settings.prefer_neighborhood, settings.umbrella_cities),
        county=_clean(address.get("county")),
        state=_clean(address.get("state")),
        postal_code=_clean(address.get("postcode")),
        country=country_code.upper() if country_code else None,
        display_name=_clean(display_name),
        coordinate=coordinate,
    )


def enrich_query(query: str, region_hint: Optional[str]) -> str:
    """Append the region hint unless the query already names its locality."""
    if not region_hint:
        return query
    locality = region_hint.split(",")[0].strip()
    locality = re.sub(r"\s+county$", "", locality, flags=re.IGNORECASE)
    words = locality.split()
    if words:
        pattern = r"\s*".join(re.escape(w) for w in words)
        if re.search(pattern, query, flags=re.IGNORECASE):
            return query
    return f"{query}, {region_hint}"


def _parse_coordinate(item: dict) -> Optional[Coordinate]:
    try:
        lat = float(item.get("lat"))
        lng = float(item.get("lon"))
    except (TypeError, ValueError):
        return None
    if not Coordinate.is_valid(lat, lng):
        return None
    return Coordinate(lat=lat, lng=lng)


class GeocoderGateway:
    """Async client for forward and reverse geocoding.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: Optional[GeocoderSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or GeocoderSettings.from_env()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.base_url,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
                "Accept-Language": "en-US",
            },
            timeout=self.settings.timeout_seconds,
            transport=self._transport,
        )

    async def _request(self, path: str, params: dict) -> Any:
        async with self._client() as client:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()

    async def _get_json(self, path: str, params: dict) -> Any:
        """GET once within the timeout; every failure becomes GeocodeUnavailable."""
        timeout = self.settings.timeout_seconds
        try:
            return await asyncio.wait_for(self._request(path, params), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Geocoder timed out", path=path, timeout_seconds=timeout)
            raise GeocodeUnavailable(f"Geocoder timed out after {timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("Geocoder HTTP error", path=path, status_code=exc.response.status_code)
            raise GeocodeUnavailable(f"Geocoder returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Geocoder request failed", path=path, error=str(exc))
            raise GeocodeUnavailable(f"Geocoder request failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("Geocoder returned invalid JSON", path=path)
            raise GeocodeUnavailable("Geocoder returned invalid JSON") from exc

    async def forward(self, query: str) -> AddressRecord:
        """Resolve free text to an address with coordinate."""
        cleaned = (query or "").strip()
        if not cleaned:
            raise GeocodeNotFound("Empty address query")

        enriched = enrich_query(cleaned, self.settings.region_hint)
        params: dict[str, Any] = {
            "q": enriched,
            "format": "jsonv2",
            "addressdetails": 1,
            "limit": 1,
        }
        if self.settings.country_codes:
            params["countrycodes"] = self.settings.country_codes
        if self.settings.viewbox is not None:
            params["viewbox"] = self.settings.viewbox.as_viewbox()
            params["bounded"] = 1

        with log_timing("geocode_forward", logger=logger, query=sanitize_message_text(cleaned, max_length=100)):
            data = await self._get_json("/search", params)

        first = data[0] if isinstance(data, list) and data else None
        coordinate = _parse_coordinate(first) if isinstance(first, dict) else None
        if coordinate is None:
            logger.info("Forward geocode found no match", query=sanitize_message_text(cleaned, max_length=100))
            raise GeocodeNotFound("No match for query")

        if first.get("address"):
            return normalize_address(first["address"], self.settings, coordinate, first.get("display_name"))

        # Match without address details: fill them in from a reverse lookup.
        record = await self.reverse(coordinate)
        return record.model_copy(
            update={
                "coordinate": coordinate,
                "display_name": record.display_name or _clean(first.get("display_name")),
            }
        )

    async def reverse(self, coordinate: Coordinate) -> AddressRecord:
        """Resolve a coordinate to an address."""
        params = {
            "lat": coordinate.lat,
            "lon": coordinate.lng,
            "format": "jsonv2",
            "addressdetails": 1,
        }
        with log_timing("geocode_reverse", logger=logger):
            data = await self._get_json("/reverse", params)

        if not isinstance(data, dict) or data.get("error"):
            logger.info("Reverse geocode found no match", lat=coordinate.lat, lng=coordinate.lng)
            raise GeocodeNotFound("No address at that location")

        return normalize_address(data.get("address"), self.settings, coordinate, data.get("display_name"))
