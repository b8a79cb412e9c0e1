"""Supabase client wrapper and table helpers for listings, inquiries and messages."""

import os
import logging
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from stylehub.utils.errors import DuplicateInquiryRace, StoreError

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

UNIQUE_VIOLATION = "23505"

# PostgREST caps responses at max-rows (1000 on hosted projects).
LISTING_PAGE_SIZE = 1000


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Drop the client reference."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def is_unique_violation(exc: Exception) -> bool:
    """True when a PostgREST error is a unique-constraint conflict."""
    if getattr(exc, "code", None) == UNIQUE_VIOLATION:
        return True
    return "duplicate key" in str(exc).lower()


def _first(result) -> Optional[dict]:
    return result.data[0] if result.data and len(result.data) > 0 else None


# Listings table operations
async def get_listing_by_id(listing_id: str) -> Optional[dict]:
    """Get listing by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("*").eq("listing_id", listing_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to get listing: {e}")
    return _first(result)


async def get_active_listings(page_size: int = LISTING_PAGE_SIZE) -> list[dict]:
    """Get every active listing, newest first, one page at a time."""
    rows: list[dict] = []
    async with SupabaseClient() as client:
        while True:
            start = len(rows)
            try:
                result = (
                    client.table("listings")
                    .select("*")
                    .eq("status", "ACTIVE")
                    .order("created_at", desc=True)
                    .order("listing_id")
                    .range(start, start + page_size - 1)
                    .execute()
                )
            except Exception as e:
                raise StoreError(f"Failed to get listings: {e}")
            page = result.data or []
            rows.extend(page)
            if len(page) < page_size:
                return rows


async def get_listing_ids_by_profiles(profile_ids: list[str]) -> list[str]:
    """Get IDs of listings owned through the given business profiles."""
    if not profile_ids:
        return []
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("listing_id").in_("business_profile_id", profile_ids).execute()
        except Exception as e:
            raise StoreError(f"Failed to get listings by profile: {e}")
    return [row["listing_id"] for row in (result.data or [])]


async def get_listing_summaries(listing_ids: list[str]) -> list[dict]:
    """Get title/business name for the given listings."""
    if not listing_ids:
        return []
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("listings")
                .select("listing_id,title,business_name")
                .in_("listing_id", listing_ids)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get listing summaries: {e}")
    return result.data if result.data else []


# Profiles and users
async def get_business_profile(profile_id: str) -> Optional[dict]:
    """Get business profile by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("business_profiles").select("*").eq("profile_id", profile_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to get business profile: {e}")
    return _first(result)


async def get_business_profiles_by_user(user_id: str) -> list[dict]:
    """Get business profiles owned by a user."""
    async with SupabaseClient() as client:
        try:
            result = client.table("business_profiles").select("*").eq("user_id", user_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to get business profiles: {e}")
    return result.data if result.data else []


async def get_talent_profile_by_user(user_id: str) -> Optional[dict]:
    """Get a user's talent profile."""
    async with SupabaseClient() as client:
        try:
            result = client.table("talent_profiles").select("*").eq("user_id", user_id).limit(1).execute()
        except Exception as e:
            raise StoreError(f"Failed to get talent profile: {e}")
    return _first(result)


async def get_user_by_id(user_id: str) -> Optional[dict]:
    """Get user by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").select("*").eq("user_id", user_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to get user: {e}")
    return _first(result)


async def get_user_summaries(user_ids: list[str]) -> list[dict]:
    """Get display fields for the given users."""
    if not user_ids:
        return []
    async with SupabaseClient() as client:
        try:
            result = client.table("users").select("user_id,name,username").in_("user_id", user_ids).execute()
        except Exception as e:
            raise StoreError(f"Failed to get user summaries: {e}")
    return result.data if result.data else []


# Inquiries table operations (unique on sender_id, listing_id)
async def get_inquiry_by_id(inquiry_id: str) -> Optional[dict]:
    """Get inquiry by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("inquiries").select("*").eq("inquiry_id", inquiry_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to get inquiry: {e}")
    return _first(result)


async def find_inquiry(sender_id: str, listing_id: str) -> Optional[dict]:
    """Get the inquiry for a (sender, listing) pair, if any."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("inquiries")
                .select("*")
                .eq("sender_id", sender_id)
                .eq("listing_id", listing_id)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to find inquiry: {e}")
    return _first(result)


async def insert_inquiry(inquiry_data: dict) -> dict:
    """Insert an inquiry. Raises DuplicateInquiryRace on the (sender, listing) constraint."""
    async with SupabaseClient() as client:
        try:
            result = client.table("inquiries").insert(inquiry_data).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateInquiryRace(f"Inquiry exists for sender/listing: {e}")
            raise StoreError(f"Failed to insert inquiry: {e}")
    row = _first(result)
    if row is None:
        raise StoreError("Failed to insert inquiry: no data returned")
    return row


async def update_inquiry(inquiry_id: str, updates: dict) -> dict:
    """Update an inquiry."""
    async with SupabaseClient() as client:
        try:
            result = client.table("inquiries").update(updates).eq("inquiry_id", inquiry_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to update inquiry: {e}")
    row = _first(result)
    if row is None:
        raise StoreError(f"Failed to update inquiry: {inquiry_id}")
    return row


async def delete_inquiry_row(inquiry_id: str) -> None:
    """Hard-delete an inquiry."""
    async with SupabaseClient() as client:
        try:
            client.table("inquiries").delete().eq("inquiry_id", inquiry_id).execute()
        except Exception as e:
            raise StoreError(f"Failed to delete inquiry: {e}")


async def get_inquiries_by_sender(sender_id: str) -> list[dict]:
    """Get inquiries a user has sent, newest first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("inquiries")
                .select("*")
                .eq("sender_id", sender_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get sent inquiries: {e}")
    return result.data if result.data else []


async def get_inquiries_by_owner(owner_id: str) -> list[dict]:
    """Get inquiries whose stored owner is the user."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("inquiries")
                .select("*")
                .eq("owner_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get received inquiries: {e}")
    return result.data if result.data else []


async def get_inquiries_by_listings(listing_ids: list[str]) -> list[dict]:
    """Get inquiries on any of the given listings."""
    if not listing_ids:
        return []
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("inquiries")
                .select("*")
                .in_("listing_id", listing_ids)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get inquiries by listing: {e}")
    return result.data if result.data else []


async def sender_has_inquiries(sender_id: str) -> bool:
    """Check whether a user has ever sent an inquiry."""
    async with SupabaseClient() as client:
        try:
            result = client.table("inquiries").select("inquiry_id").eq("sender_id", sender_id).limit(1).execute()
        except Exception as e:
            raise StoreError(f"Failed to check sent inquiries: {e}")
    return bool(result.data)


# Messages table operations (append-only)
async def insert_message(message_data: dict) -> dict:
    """Append a message."""
    async with SupabaseClient() as client:
        try:
            result = client.table("messages").insert(message_data).execute()
        except Exception as e:
            raise StoreError(f"Failed to insert message: {e}")
    row = _first(result)
    if row is None:
        raise StoreError("Failed to insert message: no data returned")
    return row


async def get_messages_for_user(user_id: str) -> list[dict]:
    """Get every message the user sent or received, newest first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("messages")
                .select("*")
                .or_(f"sender_id.eq.{user_id},recipient_id.eq.{user_id}")
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get messages: {e}")
    return result.data if result.data else []


async def get_messages_between(sender_id: str, recipient_id: str, listing_id: Optional[str]) -> list[dict]:
    """Get messages sent from one user to another in a listing context (or none)."""
    async with SupabaseClient() as client:
        try:
            query = (
                client.table("messages")
                .select("*")
                .eq("sender_id", sender_id)
                .eq("recipient_id", recipient_id)
            )
            if listing_id:
                query = query.eq("listing_id", listing_id)
            else:
                query = query.is_("listing_id", "null")
            result = query.order("created_at").execute()
        except Exception as e:
            raise StoreError(f"Failed to get thread messages: {e}")
    return result.data if result.data else []
