"""Inbox aggregator: derives conversation threads from direct messages.

Threads are never stored. Each inbox read groups the viewer's messages by
(counterpart, listing-or-none) and keeps the newest message per group.
"""

from datetime import datetime, timezone
from typing import Iterable

from stylehub.models.listing import ListingSummary
from stylehub.models.message import Message, MessageCreate, Thread, ThreadKey
from stylehub.models.profile import UserSummary
from stylehub.services import supabase_client as store
from stylehub.utils.errors import InvalidRequest, RecipientNotFound
from stylehub.utils.ids import generate_record_id
from stylehub.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _message_order(message: Message) -> tuple[datetime, str]:
    return (_aware(message.created_at), message.message_id)


def thread_key_for(user_id: str, message: Message) -> ThreadKey:
    """Key of the thread ``message`` belongs to, seen from ``user_id``."""
    counterpart = message.recipient_id if message.sender_id == user_id else message.sender_id
    return ThreadKey(counterpart_id=counterpart, listing_id=message.listing_id)


def aggregate_threads(user_id: str, messages: Iterable[Message]) -> list[Thread]:
    """Group messages into threads, newest thread first.

    Messages not involving ``user_id`` are skipped. Within a thread the newest
    message wins, equal timestamps going to the larger message ID. Threads are
    ordered by last message time descending, then by key, so the same input in
    any order yields the same output.
    """
    latest: dict[tuple[str, str], Message] = {}
    counts: dict[tuple[str, str], int] = {}

    for message in messages:
        if user_id not in (message.sender_id, message.recipient_id):
            continue
        group = thread_key_for(user_id, message).sort_key()
        counts[group] = counts.get(group, 0) + 1
        current = latest.get(group)
        if current is None or _message_order(message) > _message_order(current):
            latest[group] = message

    threads = []
    for message in latest.values():
        key = thread_key_for(user_id, message)
        threads.append(
            Thread(
                key=key.encode(),
                counterpart_id=key.counterpart_id,
                listing_id=key.listing_id,
                last_message=message,
                last_message_from_me=message.sender_id == user_id,
                message_count=counts[key.sort_key()],
            )
        )

    # Two stable passes: key ascending, then time descending.
    threads.sort(key=lambda t: (t.counterpart_id, t.listing_id or ""))
    threads.sort(key=lambda t: _aware(t.last_message.created_at), reverse=True)
    return threads


async def send_message(sender_id: str, payload: MessageCreate) -> Message:
    """Append a direct message. ``thread_key`` wins over recipient/listing fields."""
    if payload.thread_key:
        try:
            key = ThreadKey.parse(payload.thread_key)
        except ValueError as e:
            raise InvalidRequest(str(e))
        recipient_id, listing_id = key.counterpart_id, key.listing_id
    else:
        recipient_id, listing_id = payload.recipient_id, payload.listing_id or None

    if not recipient_id:
        raise InvalidRequest("Recipient or thread key required")
    if recipient_id == sender_id:
        raise InvalidRequest("Cannot message yourself")

    if await store.get_user_by_id(recipient_id) is None:
        raise RecipientNotFound(f"Recipient not found: {recipient_id}")

    row = await store.insert_message(
        {
            "message_id": generate_record_id(),
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "listing_id": listing_id,
            "body": payload.body,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    logger.info(
        "Message sent",
        message_id=row["message_id"],
        sender_id=mask_user_id(sender_id),
        recipient_id=mask_user_id(recipient_id),
        listing_id=listing_id,
    )
    return Message.model_validate(row)


async def get_thread_history(user_id: str, thread_key: str) -> list[Message]:
    """Both directions of a conversation, oldest first."""
    try:
        key = ThreadKey.parse(thread_key)
    except ValueError as e:
        raise InvalidRequest(str(e))

    outgoing = await store.get_messages_between(user_id, key.counterpart_id, key.listing_id)
    incoming = await store.get_messages_between(key.counterpart_id, user_id, key.listing_id)
    messages = [Message.model_validate(row) for row in [*outgoing, *incoming]]
    return sorted(messages, key=_message_order)


@timed("get_inbox_threads")
async def get_inbox_threads(user_id: str) -> list[Thread]:
    """Aggregate the viewer's threads and attach counterpart/listing display fields."""
    rows = await store.get_messages_for_user(user_id)
    threads = aggregate_threads(user_id, (Message.model_validate(row) for row in rows))
    if not threads:
        return threads

    users = {
        row["user_id"]: UserSummary.model_validate(row)
        for row in await store.get_user_summaries(sorted({t.counterpart_id for t in threads}))
    }
    listings = {
        row["listing_id"]: ListingSummary.model_validate(row)
        for row in await store.get_listing_summaries(sorted({t.listing_id for t in threads if t.listing_id}))
    }
    return [
        thread.model_copy(
            update={
                "counterpart": users.get(thread.counterpart_id),
                "listing": listings.get(thread.listing_id) if thread.listing_id else None,
            }
        )
        for thread in threads
    ]
