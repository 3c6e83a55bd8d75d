"""Data models for feedrelay."""

from dataclasses import dataclass, field, replace
from datetime import datetime


@dataclass(frozen=True)
class FeedItem:
    """Represents a single RSS/Atom/JSON feed item."""

    title: str
    description: str
    link: str
    content: str = ""
    published: datetime | None = None
    updated: datetime | None = None
    guid: str | None = None


@dataclass(frozen=True)
class ParsedFeed:
    """Represents a fetched and normalized feed document."""

    url: str
    title: str
    description: str
    link: str | None = None
    image_url: str | None = None
    published: datetime | None = None
    items: tuple[FeedItem, ...] = ()

    def stripped(self) -> "ParsedFeed":
        """Return a copy whose items carry no content body."""
        return replace(
            self, items=tuple(replace(item, content="") for item in self.items)
        )


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the clock reading at insertion."""

    value: object
    inserted_at: float


@dataclass(frozen=True)
class FeedEntity:
    """A feed URL paired with its derived private key (hex)."""

    url: str
    private_key: str


@dataclass(frozen=True)
class Event:
    """An unsigned Nostr event.

    The id is always computed from the other fields, see
    feedrelay.events.make_event.
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: list[list[str]] = field(default_factory=list)
    content: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }
