"""Listing search endpoint.

Query parameters: ``address`` or ``lat``/``lng``, ``radius``, ``role``,
``schedule``, ``employmentType``, ``compModel``, ``apprenticeFriendly``,
``posted`` (24h, 7d, 30d) and ``q``.
"""

from stylehub.services.listing_search import ListingSearch, load_active_listings, search_listings
from stylehub.utils.http import JSONRequestHandler

_PARAM_FIELDS = {
    "address": "address",
    "lat": "lat",
    "lng": "lng",
    "radius": "radius_miles",
    "role": "role",
    "schedule": "schedule",
    "employmentType": "employment_type",
    "compModel": "comp_model",
    "posted": "posted",
    "q": "q",
}


def search_from_query(params: dict) -> ListingSearch:
    fields = {field: params[name] for name, field in _PARAM_FIELDS.items() if params.get(name)}
    fields["apprentice_friendly"] = params.get("apprenticeFriendly", "").lower() in ("1", "true", "yes")
    return ListingSearch.model_validate(fields)


class handler(JSONRequestHandler):
    route_name = "jobs/nearby"

    def do_GET(self):
        self.respond(self._search)

    async def _search(self):
        search = search_from_query(self.query)
        candidates = await load_active_listings()
        return await search_listings(search, candidates)
