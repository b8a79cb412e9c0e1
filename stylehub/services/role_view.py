"""Role-scoped view resolver.

Decides whether the inbox shows inquiries the user *sent* (talent side) or
*received* (business side). The first step that yields a value wins:

1. explicit override on the request
2. stored preference (role cookie)
3. declared account role
4. profile presence: business only -> received, talent only -> sent
5. the user has sent an inquiry before -> sent
6. default -> sent

Steps 4 and 5 hit the store and only run when 1-3 gave nothing.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from stylehub.models.inquiry import Inquiry
from stylehub.services import supabase_client as store
from stylehub.services.inquiries import has_sent_inquiry, list_received_inquiries, list_sent_inquiries
from stylehub.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

View = Literal["sent", "received"]
ViewSource = Literal["override", "preference", "role", "profile", "history", "default"]

DEFAULT_VIEW: View = "sent"

_ALIASES: dict[str, View] = {
    "sent": "sent",
    "received": "received",
    "talent": "sent",
    "employer": "received",
}


def normalize_view(value: Optional[str]) -> Optional[View]:
    """Map a view name or role alias onto a view; anything else is None."""
    if not value or not isinstance(value, str):
        return None
    return _ALIASES.get(value.strip().lower())


class ViewResolution(BaseModel):
    view: View
    source: ViewSource = Field(..., description="Resolution step that produced the view")


async def _view_from_profiles(user_id: str) -> Optional[View]:
    has_business = bool(await store.get_business_profiles_by_user(user_id))
    has_talent = await store.get_talent_profile_by_user(user_id) is not None
    if has_business and not has_talent:
        return "received"
    if has_talent and not has_business:
        return "sent"
    return None


async def resolve_view_source(
    user_id: str,
    explicit_override: Optional[str] = None,
    stored_preference: Optional[str] = None,
    declared_role: Optional[str] = None,
) -> ViewResolution:
    """Resolve the view along with the step that decided it."""
    for source, candidate in (
        ("override", explicit_override),
        ("preference", stored_preference),
        ("role", declared_role),
    ):
        view = normalize_view(candidate)
        if view:
            return ViewResolution(view=view, source=source)

    view = await _view_from_profiles(user_id)
    if view:
        return ViewResolution(view=view, source="profile")

    if await has_sent_inquiry(user_id):
        return ViewResolution(view="sent", source="history")

    logger.debug("View fell through to default", user_id=mask_user_id(user_id))
    return ViewResolution(view=DEFAULT_VIEW, source="default")


async def resolve_view(
    user_id: str,
    explicit_override: Optional[str] = None,
    stored_preference: Optional[str] = None,
    declared_role: Optional[str] = None,
) -> View:
    resolution = await resolve_view_source(user_id, explicit_override, stored_preference, declared_role)
    return resolution.view


class InquiryOverview(BaseModel):
    view: View
    inquiries: list[Inquiry] = Field(default_factory=list)


async def get_inquiry_overview(user_id: str, view: View) -> InquiryOverview:
    """Inquiries for the resolved view: sent by the user, or received by them."""
    if view == "received":
        inquiries = await list_received_inquiries(user_id)
    else:
        inquiries = await list_sent_inquiries(user_id)
    return InquiryOverview(view=view, inquiries=inquiries)
