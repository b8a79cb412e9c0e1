"""Inquiry deduplicator.

At most one inquiry exists per (sender, listing). Resubmitting rewrites the
contact fields on the existing row; a concurrent first submission that loses
the insert race is folded into an update of the winning row, so every caller
sees the same success result.
"""

from datetime import datetime, timezone
from typing import Optional

from stylehub.models.inquiry import Inquiry, InquiryCreate
from stylehub.models.listing import Listing
from stylehub.services import supabase_client as store
from stylehub.services.ownership import owner_for_listing, resolve_listing_owner
from stylehub.utils.errors import DuplicateInquiryRace, InquiryNotFound, StoreError
from stylehub.utils.ids import generate_record_id
from stylehub.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _rewrite(existing: dict, payload: InquiryCreate, owner_id: str) -> str:
    updates = {**payload.contact_fields(), "owner_id": owner_id, "updated_at": _now()}
    await store.update_inquiry(existing["inquiry_id"], updates)
    return existing["inquiry_id"]


async def submit_inquiry(sender_id: str, payload: InquiryCreate) -> str:
    """Create or refresh the sender's inquiry on a listing. Returns its ID.

    Ownership is resolved before any write, so ``ListingNotFound`` and
    ``NoOwnerOnListing`` leave the store untouched.
    """
    owner_id = await resolve_listing_owner(payload.listing_id)

    existing = await store.find_inquiry(sender_id, payload.listing_id)
    if existing:
        inquiry_id = await _rewrite(existing, payload, owner_id)
        logger.info(
            "Inquiry updated",
            inquiry_id=inquiry_id,
            listing_id=payload.listing_id,
            sender_id=mask_user_id(sender_id),
        )
        return inquiry_id

    now = _now()
    row = {
        "inquiry_id": generate_record_id(),
        "sender_id": sender_id,
        "listing_id": payload.listing_id,
        "owner_id": owner_id,
        **payload.contact_fields(),
        "created_at": now,
        "updated_at": now,
    }
    try:
        created = await store.insert_inquiry(row)
    except DuplicateInquiryRace:
        # Another submission for the same pair committed first.
        winner = await store.find_inquiry(sender_id, payload.listing_id)
        if winner is None:
            raise StoreError("Inquiry conflict reported but no row found")
        inquiry_id = await _rewrite(winner, payload, owner_id)
        logger.info(
            "Inquiry insert lost race, updated existing row",
            inquiry_id=inquiry_id,
            listing_id=payload.listing_id,
            sender_id=mask_user_id(sender_id),
        )
        return inquiry_id

    logger.info(
        "Inquiry created",
        inquiry_id=created["inquiry_id"],
        listing_id=payload.listing_id,
        sender_id=mask_user_id(sender_id),
        owner_id=mask_user_id(owner_id),
    )
    return created["inquiry_id"]


async def _current_owner(listing_id: str) -> Optional[str]:
    row = await store.get_listing_by_id(listing_id)
    if row is None:
        return None
    return await owner_for_listing(Listing.model_validate(row))


async def delete_inquiry(user_id: str, inquiry_id: str) -> None:
    """Hard-delete an inquiry the caller is a party to.

    Parties are the sender, the owner stored on the row, and the listing's
    currently resolved owner. Anyone else gets ``InquiryNotFound``.
    """
    row = await store.get_inquiry_by_id(inquiry_id)
    if row is None:
        raise InquiryNotFound(f"Inquiry not found: {inquiry_id}")

    allowed = user_id in (row.get("sender_id"), row.get("owner_id"))
    if not allowed:
        allowed = user_id == await _current_owner(row["listing_id"])
    if not allowed:
        logger.info("Inquiry delete refused", inquiry_id=inquiry_id, user_id=mask_user_id(user_id))
        raise InquiryNotFound(f"Inquiry not found: {inquiry_id}")

    await store.delete_inquiry_row(inquiry_id)
    logger.info("Inquiry deleted", inquiry_id=inquiry_id, user_id=mask_user_id(user_id))


def _newest_first(inquiries: list[Inquiry]) -> list[Inquiry]:
    floor = datetime.min.replace(tzinfo=timezone.utc)

    def key(inquiry: Inquiry):
        created = inquiry.created_at
        if created is None:
            return floor
        return created if created.tzinfo else created.replace(tzinfo=timezone.utc)

    return sorted(inquiries, key=key, reverse=True)


async def list_sent_inquiries(user_id: str) -> list[Inquiry]:
    rows = await store.get_inquiries_by_sender(user_id)
    return _newest_first([Inquiry.model_validate(row) for row in rows])


async def list_received_inquiries(user_id: str) -> list[Inquiry]:
    """Inquiries owned by the user, directly or through their business profiles."""
    rows = list(await store.get_inquiries_by_owner(user_id))

    profiles = await store.get_business_profiles_by_user(user_id)
    listing_ids = await store.get_listing_ids_by_profiles([p["profile_id"] for p in profiles])
    rows.extend(await store.get_inquiries_by_listings(listing_ids))

    merged: dict[str, Inquiry] = {}
    for row in rows:
        merged.setdefault(row["inquiry_id"], Inquiry.model_validate(row))
    return _newest_first(list(merged.values()))


async def has_sent_inquiry(user_id: str) -> bool:
    return await store.sender_has_inquiries(user_id)
