"""Inbox threads for the caller, with the resolved role view."""

from stylehub.services.inbox import get_inbox_threads
from stylehub.services.role_view import resolve_view_source
from stylehub.utils.http import JSONRequestHandler


class handler(JSONRequestHandler):
    route_name = "inbox/threads"

    def do_GET(self):
        self.respond(self._threads)

    async def _threads(self):
        viewer = self.viewer()
        resolution = await resolve_view_source(
            viewer.user_id,
            explicit_override=self.query.get("view"),
            stored_preference=viewer.stored_preference,
            declared_role=viewer.declared_role,
        )
        threads = await get_inbox_threads(viewer.user_id)
        return {"view": resolution.view, "viewSource": resolution.source, "threads": threads}
