"""Tests for the geocoder gateway."""

import asyncio
import pytest
import httpx
from stylehub.models.geo import Coordinate
from stylehub.services.geocoder import GeocoderGateway, enrich_query, normalize_address, pick_city
from stylehub.utils.config import GeocoderSettings
from stylehub.utils.errors import GeocodeNotFound, GeocodeUnavailable
from tests.fixtures.nominatim_responses import (
    BARE_SEARCH,
    DOWNTOWN_REVERSE,
    ESCONDIDO_SEARCH,
    PACIFIC_BEACH_SEARCH,
    REVERSE_NOT_FOUND,
    VILLAGE_REVERSE,
)
from tests.utils.helpers import nominatim_transport


@pytest.mark.unit
@pytest.mark.parametrize(
    "query,expected",
    [
        ("1200 Garnet Ave", "1200 Garnet Ave, San Diego County, CA"),
        ("Garnet Ave, San Diego", "Garnet Ave, San Diego"),
        ("garnet ave sandiego", "garnet ave sandiego"),
        ("North Park, SAN  DIEGO", "North Park, SAN  DIEGO"),
    ],
)
def test_enrich_query_region_hint(query, expected):
    """Test the region hint is appended only when the query lacks the locality."""
    assert enrich_query(query, "San Diego County, CA") == expected


@pytest.mark.unit
def test_enrich_query_without_hint():
    """Test a disabled hint leaves the query alone."""
    assert enrich_query("1200 Garnet Ave", None) == "1200 Garnet Ave"


@pytest.mark.unit
def test_pick_city_prefers_neighborhood_over_umbrella_city():
    """Test a suburb replaces the umbrella city name."""
    address = {"suburb": "Pacific Beach", "city": "San Diego"}

    assert pick_city(address) == "Pacific Beach"
    assert pick_city(address, prefer_neighborhood=False) == "San Diego"


@pytest.mark.unit
def test_pick_city_keeps_other_cities():
    """Test cities outside the umbrella list keep their own name."""
    assert pick_city({"city": "Escondido", "neighbourhood": "Old Escondido"}) == "Escondido"


@pytest.mark.unit
def test_pick_city_field_precedence():
    """Test municipality > city > town > village > locality > hamlet."""
    assert pick_city({"town": "Ramona", "village": "Julian"}) == "Ramona"
    assert pick_city({"hamlet": "Ranchita"}) == "Ranchita"
    assert pick_city({"municipality": "Coronado", "city": "San Diego"}) == "Coronado"


@pytest.mark.unit
def test_pick_city_neighborhood_fills_empty_city():
    """Test a neighbourhood is used when no city-level field exists."""
    assert pick_city({"neighbourhood": "Gaslamp Quarter"}) == "Gaslamp Quarter"
    assert pick_city({}) is None


@pytest.mark.unit
def test_normalize_address_maps_fields(geocoder_settings):
    """Test provider fields map onto the address record."""
    record = normalize_address(PACIFIC_BEACH_SEARCH[0]["address"], geocoder_settings)

    assert record.street == "1200 Garnet Avenue"
    assert record.city == "Pacific Beach"
    assert record.county == "San Diego County"
    assert record.state == "California"
    assert record.postal_code == "92109"
    assert record.country == "US"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forward_sends_region_constraints(geocoder_settings):
    """Test forward search params carry the hint, viewbox and country code."""
    requests = []
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(search=PACIFIC_BEACH_SEARCH, recorder=requests))

    record = await gateway.forward("1200 Garnet Ave")

    params = requests[0].url.params
    assert requests[0].url.path == "/search"
    assert params["q"] == "1200 Garnet Ave, San Diego County, CA"
    assert params["format"] == "jsonv2"
    assert params["addressdetails"] == "1"
    assert params["limit"] == "1"
    assert params["countrycodes"] == "us"
    assert params["viewbox"] == "-117.6,33.5,-116.08,32.5"
    assert params["bounded"] == "1"
    assert requests[0].headers["User-Agent"] == geocoder_settings.user_agent
    assert record.city == "Pacific Beach"
    assert record.coordinate == Coordinate(lat=32.7980, lng=-117.2400)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forward_without_viewbox(geocoder_settings):
    """Test a disabled viewbox drops the bounded search params."""
    settings = geocoder_settings.model_copy(update={"viewbox": None})
    requests = []
    gateway = GeocoderGateway(settings, nominatim_transport(search=ESCONDIDO_SEARCH, recorder=requests))

    record = await gateway.forward("Escondido")

    assert "viewbox" not in requests[0].url.params
    assert "bounded" not in requests[0].url.params
    assert record.city == "Escondido"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forward_without_address_details_uses_reverse(geocoder_settings):
    """Test a bare match is filled in from a reverse lookup at its coordinate."""
    requests = []
    gateway = GeocoderGateway(
        geocoder_settings,
        nominatim_transport(search=BARE_SEARCH, reverse=DOWNTOWN_REVERSE, recorder=requests),
    )

    record = await gateway.forward("downtown")

    assert [r.url.path for r in requests] == ["/search", "/reverse"]
    assert record.city == "Gaslamp Quarter"
    assert record.coordinate == Coordinate(lat=32.7157, lng=-117.1611)


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [[], [{"display_name": "no coordinates"}], {"unexpected": "shape"}])
async def test_forward_no_match(geocoder_settings, payload):
    """Test empty or coordinate-less results raise GeocodeNotFound."""
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(search=payload))

    with pytest.raises(GeocodeNotFound):
        await gateway.forward("nowhere at all")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forward_blank_query_makes_no_request(geocoder_settings):
    """Test a blank query fails without calling the provider."""
    requests = []
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(recorder=requests))

    with pytest.raises(GeocodeNotFound):
        await gateway.forward("   ")
    assert requests == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reverse_village(geocoder_settings):
    """Test reverse geocoding a rural coordinate."""
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(reverse=VILLAGE_REVERSE))

    record = await gateway.reverse(Coordinate(lat=33.0787, lng=-116.6020))

    assert record.city == "Julian"
    assert record.street is None
    assert record.coordinate.lat == 33.0787


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reverse_not_found(geocoder_settings):
    """Test the provider's error payload maps to GeocodeNotFound."""
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(reverse=REVERSE_NOT_FOUND))

    with pytest.raises(GeocodeNotFound):
        await gateway.reverse(Coordinate(lat=0, lng=0))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_provider_error_is_unavailable(geocoder_settings):
    """Test HTTP errors from the provider raise GeocodeUnavailable."""
    gateway = GeocoderGateway(geocoder_settings, nominatim_transport(status_code=503))

    with pytest.raises(GeocodeUnavailable):
        await gateway.forward("1200 Garnet Ave")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_connection_error_is_unavailable(geocoder_settings):
    """Test transport failures raise GeocodeUnavailable."""
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = GeocoderGateway(geocoder_settings, httpx.MockTransport(refuse))

    with pytest.raises(GeocodeUnavailable):
        await gateway.forward("1200 Garnet Ave")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_slow_provider_times_out(geocoder_settings):
    """Test a call is bounded by the configured timeout."""
    async def stall(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=PACIFIC_BEACH_SEARCH)

    settings = geocoder_settings.model_copy(update={"timeout_seconds": 0.05})
    gateway = GeocoderGateway(settings, httpx.MockTransport(stall))

    with pytest.raises(GeocodeUnavailable):
        await gateway.forward("1200 Garnet Ave")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_json_is_unavailable(geocoder_settings):
    """Test a non-JSON body raises GeocodeUnavailable."""
    gateway = GeocoderGateway(
        geocoder_settings,
        httpx.MockTransport(lambda request: httpx.Response(200, text="<html>busy</html>")),
    )

    with pytest.raises(GeocodeUnavailable):
        await gateway.forward("1200 Garnet Ave")


@pytest.mark.unit
def test_settings_from_env(monkeypatch):
    """Test environment overrides for the geocoder."""
    monkeypatch.setenv("GEOCODER_REGION_HINT", "")
    monkeypatch.setenv("GEOCODER_VIEWBOX", "")
    monkeypatch.setenv("GEOCODER_PREFER_NEIGHBORHOOD", "false")
    monkeypatch.setenv("GEOCODER_UMBRELLA_CITIES", "San Diego, Los Angeles")

    settings = GeocoderSettings.from_env()

    assert settings.region_hint is None
    assert settings.viewbox is None
    assert settings.prefer_neighborhood is False
    assert settings.umbrella_cities == ["San Diego", "Los Angeles"]
