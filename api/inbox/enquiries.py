"""Role-scoped inquiry list. ``?view=sent|received`` overrides the resolved view."""

from stylehub.services.role_view import get_inquiry_overview, resolve_view
from stylehub.utils.http import JSONRequestHandler


class handler(JSONRequestHandler):
    route_name = "inbox/enquiries"

    def do_GET(self):
        self.respond(self._list)

    async def _list(self):
        viewer = self.viewer()
        view = await resolve_view(
            viewer.user_id,
            explicit_override=self.query.get("view"),
            stored_preference=viewer.stored_preference,
            declared_role=viewer.declared_role,
        )
        return await get_inquiry_overview(viewer.user_id, view)
