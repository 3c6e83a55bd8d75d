"""Feed fetching and parsing for feedrelay."""

import calendar
import json
from datetime import UTC, datetime

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .cache import FeedCache
from .config import HttpConfig, new_session
from .errors import FeedDownloadError, FeedParseError
from .logging_config import create_execution_logger
from .models import FeedItem, ParsedFeed


class FeedFetcher:
    """Fetches RSS/Atom/JSON feeds through a shared FeedCache."""

    def __init__(
        self,
        cache: FeedCache,
        config: HttpConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedFetcher with configuration.

        Args:
            cache: Shared cache of parsed feeds
            config: HTTP settings (timeout, user agent)
            session: Shared requests session, one is created when omitted
            execution_id: Execution ID for logging context
        """
        self.cache = cache
        self.config = config or HttpConfig()
        self.logger = create_execution_logger("fetcher", execution_id)
        self.session = session or new_session(self.config)

    def fetch_feed(self, feed_url: str) -> ParsedFeed:
        """Return the parsed feed at a URL, from cache when fresh.

        Item content bodies are stripped before caching and the stripped
        copy is what the caller receives, on a miss as well as on a hit.

        Args:
            feed_url: Resolved feed URL

        Returns:
            ParsedFeed

        Raises:
            FeedDownloadError: If the download fails or returns an HTTP error
            FeedParseError: If the document is not a readable feed
        """
        cached = self.cache.get(feed_url)
        if cached is not None:
            self.logger.debug("Feed served from cache", feed_url=feed_url)
            return cached

        feed = self.parse_feed(feed_url).stripped()
        self.cache.put(feed_url, feed)
        return feed

    def parse_feed(self, feed_url: str) -> ParsedFeed:
        """Download and parse a single feed, bypassing the cache."""
        self.logger.info("Downloading feed content", feed_url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FeedDownloadError(
                f"Failed to download feed {feed_url}: {e}", feed_url
            ) from e

        headers = {key.lower(): value for key, value in response.headers.items()}
        json_feed = self._load_json_feed(response.content, headers, feed_url)
        if json_feed is not None:
            feed = self.normalize_json_feed(json_feed, feed_url)
            self.logger.log_feed_processing(feed_url, len(feed.items))
            return feed

        parsed = feedparser.parse(response.content, response_headers=headers)

        if not parsed.get("version"):
            raise self._parse_error(
                feed_url, parsed.get("bozo_exception", "feed type not detected")
            )

        if parsed.bozo:
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {parsed.get('bozo_exception')}",
                feed_url=feed_url,
            )

        feed = self.normalize_feed(parsed, feed_url)
        self.logger.log_feed_processing(feed_url, len(feed.items))
        return feed

    def normalize_feed(self, parsed: feedparser.FeedParserDict, feed_url: str) -> ParsedFeed:
        """Normalize feedparser output into a ParsedFeed."""
        meta = parsed.feed

        items = []
        for entry in parsed.entries:
            try:
                items.append(self.normalize_item(entry))
            except (AttributeError, TypeError, ValueError) as e:
                self.logger.warning(
                    f"Failed to normalize entry from {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )

        return ParsedFeed(
            url=feed_url,
            title=meta.get("title", ""),
            description=self.clean_html_content(
                meta.get("subtitle") or meta.get("description") or ""
            ),
            link=meta.get("link") or None,
            image_url=self._feed_image(meta),
            published=self._parse_date(meta, "published"),
            items=tuple(items),
        )

    def normalize_item(self, entry: feedparser.FeedParserDict) -> FeedItem:
        """Normalize a raw feed entry into a FeedItem."""
        content = ""
        if entry.get("content"):
            content = entry.content[0].get("value", "")

        return FeedItem(
            title=entry.get("title", ""),
            description=self.clean_html_content(
                entry.get("summary") or entry.get("description") or ""
            ),
            link=entry.get("link", ""),
            content=content,
            published=self._parse_date(entry, "published"),
            updated=self._parse_date(entry, "updated"),
            guid=entry.get("id") or None,
        )

    def normalize_json_feed(self, data: dict, feed_url: str) -> ParsedFeed:
        """Normalize a decoded JSON Feed document into a ParsedFeed."""
        items = []
        for entry in data.get("items") or []:
            if not isinstance(entry, dict):
                self.logger.warning(
                    f"Skipping malformed JSON Feed item from {feed_url}",
                    feed_url=feed_url,
                )
                continue
            items.append(self.normalize_json_item(entry))

        return ParsedFeed(
            url=feed_url,
            title=data.get("title") or "",
            description=self.clean_html_content(data.get("description") or ""),
            link=data.get("home_page_url") or None,
            image_url=data.get("icon") or data.get("favicon") or None,
            items=tuple(items),
        )

    def normalize_json_item(self, entry: dict) -> FeedItem:
        """Normalize a JSON Feed item into a FeedItem."""
        content = entry.get("content_html") or entry.get("content_text") or ""
        description = entry.get("summary") or entry.get("content_text") or ""
        if not description and entry.get("content_html"):
            description = entry["content_html"]

        guid = entry.get("id")
        return FeedItem(
            title=entry.get("title") or "",
            description=self.clean_html_content(description),
            link=entry.get("url") or entry.get("external_url") or "",
            content=content,
            published=self._parse_json_date(entry.get("date_published")),
            updated=self._parse_json_date(entry.get("date_modified")),
            guid=str(guid) if guid is not None else None,
        )

    def clean_html_content(self, content: str) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" in content or ">" in content:
            soup = BeautifulSoup(content, "html.parser")
            for script in soup(["script", "style"]):
                script.decompose()
            content = soup.get_text(separator=" ")

        return " ".join(content.split())

    def _parse_date(self, node: feedparser.FeedParserDict, field: str) -> datetime | None:
        """Read `<field>_parsed` from feedparser, falling back to the raw string."""
        parsed = node.get(f"{field}_parsed")
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), UTC)

        return self._parse_json_date(node.get(field))

    def _parse_json_date(self, raw: str | None) -> datetime | None:
        """Parse an RFC 3339 or free-form date string, naive dates as UTC."""
        if not raw or not isinstance(raw, str):
            return None
        try:
            value = date_parser.parse(raw)
        except (ValueError, OverflowError):
            self.logger.debug("Unparseable date", raw_date=raw)
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value

    def _load_json_feed(self, body: bytes, headers: dict, feed_url: str) -> dict | None:
        """Decode a JSON Feed document, or return None for XML feeds.

        A body is treated as JSON when the Content-Type mentions json or the
        body starts with an object. JSON that is not a JSON Feed is rejected.
        """
        declared_json = "json" in headers.get("content-type", "")
        if not declared_json and not body.lstrip().startswith(b"{"):
            return None

        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise self._parse_error(feed_url, e) from e

        version = data.get("version") if isinstance(data, dict) else None
        if not isinstance(version, str) or "jsonfeed" not in version.lower():
            raise self._parse_error(feed_url, "not a JSON Feed document")
        return data

    def _parse_error(self, feed_url: str, error) -> FeedParseError:
        self.logger.error(
            f"Failed to parse feed {feed_url}: {error}",
            feed_url=feed_url,
            error=str(error),
        )
        return FeedParseError(f"Failed to parse feed {feed_url}: {error}", feed_url)

    @staticmethod
    def _feed_image(meta: feedparser.FeedParserDict) -> str | None:
        image = meta.get("image")
        if image:
            url = image.get("href") or image.get("url")
            if url:
                return url
        return meta.get("logo") or meta.get("icon") or None
