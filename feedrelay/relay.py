"""Feed-to-Nostr pipeline for feedrelay.

A FeedRelay is constructed once at startup and shared by every feed check.
Its FeedCache is the only mutable state shared between concurrent calls.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import requests

from .cache import FeedCache
from .config import Config, HttpConfig, new_session
from .discovery import FeedDiscoverer
from .errors import FeedFetchError
from .events import build_metadata_event, build_note_event
from .identity import IdentityDeriver
from .logging_config import create_execution_logger
from .models import Event, FeedItem, ParsedFeed
from .rss import FeedFetcher


@dataclass
class FeedEvents:
    """Events produced for one feed, ready for external signing."""

    feed_url: str
    private_key: str
    metadata: Event
    notes: list[Event] = field(default_factory=list)


class FeedRelay:
    """Resolves, fetches and converts feeds into Nostr events."""

    def __init__(
        self,
        identity: IdentityDeriver,
        discoverer: FeedDiscoverer | None = None,
        cache: FeedCache | None = None,
        http_config: HttpConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize the pipeline.

        Args:
            identity: Deriver holding the process-wide secret
            discoverer: Feed URL resolver, built from http_config when omitted
            cache: Shared feed cache, a default one is built when omitted
            http_config: HTTP settings shared by discovery and fetching
            session: Shared requests session
            execution_id: Execution ID for logging context
        """
        http_config = http_config or HttpConfig()
        session = session or new_session(http_config)

        self.identity = identity
        self.cache = cache if cache is not None else FeedCache()
        self.discoverer = discoverer or FeedDiscoverer(
            http_config, session=session, execution_id=execution_id
        )
        self.fetcher = FeedFetcher(
            self.cache, http_config, session=session, execution_id=execution_id
        )
        self.logger = create_execution_logger("relay", execution_id)

    @classmethod
    def from_config(cls, config: Config, execution_id: str | None = None) -> "FeedRelay":
        """Build a FeedRelay from environment configuration."""
        return cls(
            identity=IdentityDeriver(config.get_secret()),
            cache=FeedCache(config.get_cache_config()),
            http_config=config.get_http_config(),
            execution_id=execution_id,
        )

    def resolve_feed_url(self, seed_url: str) -> str | None:
        return self.discoverer.resolve(seed_url)

    def fetch_feed(self, feed_url: str) -> ParsedFeed:
        return self.fetcher.fetch_feed(feed_url)

    def derive_identity(self, feed_url: str) -> str:
        return self.identity.derive_identity(feed_url)

    def build_metadata_event(
        self, pubkey: str, feed: ParsedFeed, now: datetime | None = None
    ) -> Event:
        return build_metadata_event(pubkey, feed, now)

    def build_note_event(
        self, pubkey: str, item: FeedItem, now: datetime | None = None
    ) -> Event:
        return build_note_event(pubkey, item, now)

    def feed_events(
        self, feed_url: str, pubkey_for: Callable[[str], str]
    ) -> FeedEvents:
        """Fetch a resolved feed and build its metadata and note events.

        Args:
            feed_url: Resolved feed URL
            pubkey_for: Maps a hex private key to its hex public key

        Returns:
            FeedEvents for the feed

        Raises:
            FeedFetchError: If the feed cannot be fetched or parsed
        """
        feed = self.fetch_feed(feed_url)
        private_key = self.derive_identity(feed_url)
        pubkey = pubkey_for(private_key)

        return FeedEvents(
            feed_url=feed_url,
            private_key=private_key,
            metadata=self.build_metadata_event(pubkey, feed),
            notes=[self.build_note_event(pubkey, item) for item in feed.items],
        )

    def process(
        self, seed_url: str, pubkey_for: Callable[[str], str]
    ) -> FeedEvents | None:
        """Run resolve, fetch, derive and build for one seed URL.

        Failures are logged and reported as None so that one broken feed
        never affects the others.
        """
        self.logger.log_execution_start(seed_url=seed_url)
        metrics = {"feed_resolved": False, "items_found": 0, "events_built": 0}

        feed_url = self.resolve_feed_url(seed_url)
        if not feed_url:
            self.logger.info("No feed found for seed URL", seed_url=seed_url)
            self.logger.log_execution_end(success=False, metrics=metrics)
            return None
        metrics["feed_resolved"] = True

        try:
            events = self.feed_events(feed_url, pubkey_for)
        except FeedFetchError as e:
            self.logger.error(
                f"Failed to process feed {feed_url}: {e}",
                seed_url=seed_url,
                feed_url=feed_url,
                error=str(e),
            )
            self.logger.log_execution_end(success=False, metrics=metrics)
            return None

        metrics["items_found"] = len(events.notes)
        metrics["events_built"] = len(events.notes) + 1
        self.logger.log_metrics(metrics)
        self.logger.log_execution_end(success=True, feed_url=feed_url)
        return events
