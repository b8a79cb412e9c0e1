"""Inquiry endpoint: POST submits (idempotent per listing), DELETE ``?id=`` removes."""

from stylehub.models.inquiry import InquiryCreate
from stylehub.services.inquiries import delete_inquiry, submit_inquiry
from stylehub.utils.errors import InvalidRequest
from stylehub.utils.http import JSONRequestHandler

_BODY_FIELDS = {"listingId": "listing_id", "jobId": "listing_id"}


class handler(JSONRequestHandler):
    route_name = "inquiries"

    def do_POST(self):
        self.respond(self._submit)

    def do_DELETE(self):
        self.respond(self._delete)

    async def _submit(self):
        viewer = self.viewer()
        body = self.read_json()
        for alias, field in _BODY_FIELDS.items():
            if alias in body and field not in body:
                body[field] = body.pop(alias)
        payload = InquiryCreate.model_validate(body)
        inquiry_id = await submit_inquiry(viewer.user_id, payload)
        return {"ok": True, "id": inquiry_id}

    async def _delete(self):
        viewer = self.viewer()
        inquiry_id = (self.query.get("id") or "").strip()
        if not inquiry_id:
            raise InvalidRequest("Missing id")
        await delete_inquiry(viewer.user_id, inquiry_id)
        return {"ok": True}
