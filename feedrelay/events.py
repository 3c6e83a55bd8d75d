"""Construction of Nostr events from parsed feeds."""

import hashlib
import json
from datetime import UTC, datetime

from .models import Event, FeedItem, ParsedFeed

KIND_SET_METADATA = 0
KIND_TEXT_NOTE = 1

MAX_NOTE_LENGTH = 250
ELLIPSIS = "…"


def serialize_event(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str
) -> bytes:
    """Serialize event fields in the canonical form hashed into the id.

    The form is the compact JSON array
    ``[0, pubkey, created_at, kind, tags, content]`` encoded as UTF-8.
    """
    return json.dumps(
        [0, pubkey, created_at, kind, tags, content],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_event_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str
) -> str:
    """Return the SHA-256 hex digest of the canonical serialization."""
    return hashlib.sha256(
        serialize_event(pubkey, created_at, kind, tags, content)
    ).hexdigest()


def make_event(
    pubkey: str,
    created_at: int,
    kind: int,
    content: str,
    tags: list[list[str]] | None = None,
) -> Event:
    """Build an Event whose id is derived from its fields."""
    tags = [list(tag) for tag in tags or []]
    return Event(
        id=compute_event_id(pubkey, created_at, kind, tags, content),
        pubkey=pubkey,
        created_at=created_at,
        kind=kind,
        tags=tags,
        content=content,
    )


def build_metadata_event(
    pubkey: str, feed: ParsedFeed, now: datetime | None = None
) -> Event:
    """Build the profile (kind 0) event describing a feed.

    Args:
        pubkey: Hex public key of the feed identity
        feed: Parsed feed
        now: Fallback timestamp when the feed has no publish date

    Returns:
        Event with JSON metadata content
    """
    metadata = {
        "name": feed.title,
        "about": f"{feed.description}\n\n{feed.link or ''}",
    }
    if feed.image_url:
        metadata["picture"] = feed.image_url

    created_at = feed.published or now or datetime.now(UTC)

    return make_event(
        pubkey=pubkey,
        created_at=int(created_at.timestamp()),
        kind=KIND_SET_METADATA,
        content=json.dumps(metadata, separators=(",", ":"), ensure_ascii=False),
    )


def build_note_event(pubkey: str, item: FeedItem, now: datetime | None = None) -> Event:
    """Build a text note (kind 1) event for a single feed item.

    The title is rendered in bold above the description, the text is cut to
    249 characters plus an ellipsis when it exceeds 250, and the item link is
    always appended after a blank line.
    """
    content = ""
    if item.title:
        content = f"**{item.title}**\n\n"
    content += item.description or ""
    if len(content) > MAX_NOTE_LENGTH:
        content = content[: MAX_NOTE_LENGTH - 1] + ELLIPSIS
    content += f"\n\n{item.link}"

    # Published time wins over updated time when both are present
    created_at = now or datetime.now(UTC)
    if item.updated is not None:
        created_at = item.updated
    if item.published is not None:
        created_at = item.published

    return make_event(
        pubkey=pubkey,
        created_at=int(created_at.timestamp()),
        kind=KIND_TEXT_NOTE,
        content=content,
    )
