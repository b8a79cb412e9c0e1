"""Stored role view preference.

GET returns the resolved view and which step decided it. POST
``{"view": "sent"|"received"|"talent"|"employer"}`` stores it in the
``roleView`` cookie for 30 days.
"""

from stylehub.services.role_view import normalize_view, resolve_view_source
from stylehub.utils.errors import InvalidRequest
from stylehub.utils.http import JSONRequestHandler, role_cookie_header


class handler(JSONRequestHandler):
    route_name = "profile/role"

    def do_GET(self):
        self.respond(self._current)

    def do_POST(self):
        self.respond(self._store)

    async def _current(self):
        viewer = self.viewer()
        return await resolve_view_source(
            viewer.user_id,
            stored_preference=viewer.stored_preference,
            declared_role=viewer.declared_role,
        )

    async def _store(self):
        self.viewer()
        body = self.read_json()
        view = normalize_view(body.get("view") or body.get("role"))
        if view is None:
            raise InvalidRequest("view must be sent, received, talent or employer")
        return {"ok": True, "view": view}, {"Set-Cookie": role_cookie_header(view)}
