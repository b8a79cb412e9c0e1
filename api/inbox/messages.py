"""Conversation history for ``?threadKey=<counterpart>__<listing|none>``."""

from stylehub.services.inbox import get_thread_history
from stylehub.utils.errors import InvalidRequest
from stylehub.utils.http import JSONRequestHandler


class handler(JSONRequestHandler):
    route_name = "inbox/messages"

    def do_GET(self):
        self.respond(self._history)

    async def _history(self):
        viewer = self.viewer()
        thread_key = (self.query.get("threadKey") or "").strip()
        if not thread_key:
            raise InvalidRequest("Missing threadKey")
        messages = await get_thread_history(viewer.user_id, thread_key)
        return {"threadKey": thread_key, "messages": messages}
