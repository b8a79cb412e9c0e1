"""Direct message and inbox thread models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stylehub.models.listing import ListingSummary
from stylehub.models.profile import UserSummary

THREAD_KEY_SEPARATOR = "__"
NO_LISTING = "none"


class Message(BaseModel):
    """Immutable direct message row."""
    message_id: str = Field(..., description="Message ID (text)")
    sender_id: str
    recipient_id: str
    listing_id: Optional[str] = Field(None, description="Listing context, if any")
    body: str
    created_at: datetime
    sender: Optional[UserSummary] = None
    recipient: Optional[UserSummary] = None
    listing: Optional[ListingSummary] = None


class MessageCreate(BaseModel):
    """Send-message payload; thread_key wins over recipient_id/listing_id."""
    body: str = Field(..., min_length=1, max_length=2000)
    recipient_id: Optional[str] = None
    listing_id: Optional[str] = None
    thread_key: Optional[str] = None

    @field_validator("body", mode="before")
    @classmethod
    def _strip_body(cls, value):
        return value.strip() if isinstance(value, str) else value


class ThreadKey(BaseModel):
    """Conversation identity: (counterpart, listing-or-none)."""
    counterpart_id: str = Field(..., min_length=1)
    listing_id: Optional[str] = None

    def encode(self) -> str:
        return f"{self.counterpart_id}{THREAD_KEY_SEPARATOR}{self.listing_id or NO_LISTING}"

    @classmethod
    def parse(cls, key: str) -> "ThreadKey":
        """Parse ``"<counterpart_id>__<listing_id|none>"``.

        Splits on the last separator; listing IDs never contain it.
        """
        counterpart_id, separator, listing_part = (key or "").rpartition(THREAD_KEY_SEPARATOR)
        if not separator:
            counterpart_id, listing_part = listing_part, ""
        if not counterpart_id:
            raise ValueError(f"Invalid thread key: {key!r}")
        listing_id = None if listing_part in ("", NO_LISTING) else listing_part
        return cls(counterpart_id=counterpart_id, listing_id=listing_id)

    def sort_key(self) -> tuple[str, str]:
        return (self.counterpart_id, self.listing_id or "")


class Thread(BaseModel):
    """Derived conversation preview. Rebuilt on every inbox read, never stored."""
    key: str = Field(..., description="Encoded thread key")
    counterpart_id: str
    listing_id: Optional[str] = None
    counterpart: Optional[UserSummary] = None
    listing: Optional[ListingSummary] = None
    last_message: Message
    last_message_from_me: bool = False
    message_count: int = Field(default=1, ge=1)
