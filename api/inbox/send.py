"""Send a direct message, addressed by ``threadKey`` or ``recipientId`` (+ ``listingId``)."""

from stylehub.models.message import MessageCreate
from stylehub.services.inbox import send_message
from stylehub.utils.http import JSONRequestHandler

_BODY_FIELDS = {
    "threadKey": "thread_key",
    "recipientId": "recipient_id",
    "listingId": "listing_id",
    "jobId": "listing_id",
}


class handler(JSONRequestHandler):
    route_name = "inbox/send"

    def do_POST(self):
        self.respond(self._send, status=201)

    async def _send(self):
        viewer = self.viewer()
        body = self.read_json()
        fields = {"body": body.get("body")}
        for alias, field in _BODY_FIELDS.items():
            if body.get(alias) and not fields.get(field):
                fields[field] = body[alias]
        message = await send_message(viewer.user_id, MessageCreate.model_validate(fields))
        return {"ok": True, "message": message}
