"""Text record IDs."""

from ulid import ULID


def generate_record_id() -> str:
    """Generate a text-based record ID (ULID format)."""
    return str(ULID())
