"""Feed URL discovery for feedrelay."""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from .config import HttpConfig, new_session
from .logging_config import create_execution_logger

# Checked in this order, both in Content-Type headers and <link> elements
FEED_MEDIA_TYPES = ("rss+xml", "atom+xml", "feed+json")


class ProbeOutcome(Enum):
    """What a HEAD probe learned about a URL."""

    FEED = "feed"
    HTML = "html"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing a URL's content type."""

    outcome: ProbeOutcome
    feed_url: str | None = None

    @property
    def needs_link_extraction(self) -> bool:
        return self.outcome is ProbeOutcome.HTML


class FeedDiscoverer:
    """Resolves arbitrary page URLs to the feed URL they publish."""

    def __init__(
        self,
        config: HttpConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedDiscoverer.

        Args:
            config: HTTP settings (timeout, user agent)
            session: Shared requests session, one is created when omitted
            execution_id: Execution ID for logging context
        """
        self.config = config or HttpConfig()
        self.logger = create_execution_logger("discovery", execution_id)
        self.session = session or new_session(self.config)

    def probe(self, url: str) -> ProbeResult:
        """Check with a HEAD request whether a URL serves a feed directly.

        Args:
            url: URL to probe

        Returns:
            FEED with the URL itself, HTML when the page may link to a feed,
            NOT_FOUND otherwise (including request failures)
        """
        try:
            response = self.session.head(
                url, timeout=self.config.timeout, allow_redirects=True
            )
        except requests.RequestException as e:
            self.logger.warning(
                f"Probe failed for {url}: {e}", seed_url=url, error=str(e)
            )
            return ProbeResult(ProbeOutcome.NOT_FOUND)

        if response.status_code >= 300:
            self.logger.info(
                "Probe returned non-success status",
                seed_url=url,
                status_code=response.status_code,
            )
            return ProbeResult(ProbeOutcome.NOT_FOUND)

        content_type = response.headers.get("Content-Type", "")
        for media_type in FEED_MEDIA_TYPES:
            if media_type in content_type:
                return ProbeResult(ProbeOutcome.FEED, feed_url=url)

        if "text/html" in content_type:
            return ProbeResult(ProbeOutcome.HTML)

        self.logger.debug(
            "Probe found unrecognized content type",
            seed_url=url,
            content_type=content_type,
        )
        return ProbeResult(ProbeOutcome.NOT_FOUND)

    def resolve(self, seed_url: str) -> str | None:
        """Resolve a seed URL to a feed URL.

        Args:
            seed_url: Feed URL or web page URL

        Returns:
            The feed URL, or None when no feed could be located
        """
        result = self.probe(seed_url)
        if result.outcome is ProbeOutcome.FEED:
            self.logger.info("Seed URL is a feed", seed_url=seed_url)
            return result.feed_url
        if not result.needs_link_extraction:
            return None

        feed_url = self.extract_feed_link(seed_url)
        if feed_url:
            self.logger.info(
                "Discovered feed link in page", seed_url=seed_url, feed_url=feed_url
            )
        else:
            self.logger.info("No feed link found in page", seed_url=seed_url)
        return feed_url

    def extract_feed_link(self, page_url: str) -> str | None:
        """Fetch an HTML page and return the feed it links to.

        Only the highest priority media type is consulted: when its first
        <link> element has no href the search stops there.

        Args:
            page_url: HTML page URL

        Returns:
            Absolute feed URL, or None
        """
        try:
            response = self.session.get(page_url, timeout=self.config.timeout)
        except requests.RequestException as e:
            self.logger.warning(
                f"Failed to download page {page_url}: {e}",
                seed_url=page_url,
                error=str(e),
            )
            return None

        if response.status_code >= 300:
            self.logger.info(
                "Page returned non-success status",
                seed_url=page_url,
                status_code=response.status_code,
            )
            return None

        try:
            soup = BeautifulSoup(response.content, "html.parser")
        except ParserRejectedMarkup as e:
            self.logger.warning(
                f"Failed to parse page {page_url}: {e}",
                seed_url=page_url,
                error=str(e),
            )
            return None

        for media_type in FEED_MEDIA_TYPES:
            link = soup.select_one(f"link[type*='{media_type}']")
            href = link.get("href", "") if link is not None else ""
            if not href:
                return None
            if not href.startswith("http"):
                href = urljoin(page_url, href)
            return href

        return None
