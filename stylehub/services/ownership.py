"""Listing ownership resolver.

Listings carry either a direct ``owner_id`` or (older rows) a
``business_profile_id`` whose profile names the owning user. Callers get one
owner ID regardless of which shape the row has.
"""

from typing import Optional

from stylehub.models.listing import DirectOwnership, Listing, ProfileOwnership
from stylehub.services.supabase_client import get_business_profile, get_listing_by_id
from stylehub.utils.errors import ListingNotFound, NoOwnerOnListing
from stylehub.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


async def owner_for_listing(listing: Listing) -> Optional[str]:
    """Owning user ID for a loaded listing, or None if no shape resolves."""
    for shape in listing.ownership_shapes():
        if isinstance(shape, DirectOwnership):
            return shape.owner_id
        if isinstance(shape, ProfileOwnership):
            profile = await get_business_profile(shape.business_profile_id)
            if profile and profile.get("user_id"):
                return profile["user_id"]
            logger.warning(
                "Business profile on listing has no user",
                listing_id=listing.listing_id,
                business_profile_id=shape.business_profile_id,
            )
    return None


async def resolve_listing_owner(listing_id: str) -> str:
    """Resolve the user who receives contact for ``listing_id``.

    Raises:
        ListingNotFound: no such listing
        NoOwnerOnListing: neither ownership shape resolves to a user
    """
    row = await get_listing_by_id(listing_id)
    if row is None:
        raise ListingNotFound(f"Listing not found: {listing_id}")

    owner_id = await owner_for_listing(Listing.model_validate(row))
    if owner_id is None:
        logger.warning("Listing has no resolvable owner", listing_id=listing_id)
        raise NoOwnerOnListing(f"Listing has no owner: {listing_id}")
    return owner_id
