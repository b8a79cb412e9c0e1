"""Error handling utilities."""

from typing import Optional


class StyleHubError(Exception):
    """Base exception for the StyleHub core."""
    status_code: int = 500
    public_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ListingNotFound(StyleHubError):
    """Listing does not exist."""
    status_code = 404
    public_message = "Listing not found"


class NoOwnerOnListing(StyleHubError):
    """Listing has neither a direct owner nor a profile-mediated owner."""
    status_code = 422
    public_message = "Listing has no owner"


class GeocodeNotFound(StyleHubError):
    """Geocoding provider returned no match."""
    status_code = 404
    public_message = "No results near that address"


class GeocodeUnavailable(StyleHubError):
    """Geocoding provider timed out or failed."""
    status_code = 503
    public_message = "Geocoding service unavailable"


class DuplicateInquiryRace(StyleHubError):
    """Unique (sender_id, listing_id) constraint rejected an inquiry insert."""
    status_code = 409
    public_message = "Inquiry already exists"


class Unauthorized(StyleHubError):
    """Caller has no established identity."""
    status_code = 401
    public_message = "Unauthorized"


class InquiryNotFound(StyleHubError):
    """Inquiry missing, or not visible to the caller."""
    status_code = 404
    public_message = "Not found"


class RecipientNotFound(StyleHubError):
    """Message recipient does not exist."""
    status_code = 404
    public_message = "Recipient not found"


class InvalidRequest(StyleHubError):
    """Malformed request input."""
    status_code = 400
    public_message = "Bad request"


class StoreError(StyleHubError):
    """Supabase operation error."""
    status_code = 500
    public_message = "Store operation failed"
