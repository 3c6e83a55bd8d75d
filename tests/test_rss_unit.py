"""Unit tests for feed fetching and parsing."""

from datetime import UTC, datetime

import pytest
import requests
from conftest import (
    ATOM_DOCUMENT,
    JSON_FEED_DOCUMENT,
    NON_FEED_XML,
    RSS_DOCUMENT,
    make_response,
)

from feedrelay.cache import FeedCache
from feedrelay.config import HttpConfig
from feedrelay.errors import FeedDownloadError, FeedFetchError, FeedParseError
from feedrelay.rss import FeedFetcher

FEED_URL = "https://example.com/feed.xml"
JSON_URL = "https://json.example.org/feed.json"


@pytest.fixture
def cache(clock):
    return FeedCache(clock=clock)


class TestFeedFetcherUnit:
    """Unit tests for FeedFetcher."""

    def test_rss_2_0_parsing(self, session, cache):
        session.get.return_value = make_response(
            content_type="application/rss+xml", content=RSS_DOCUMENT
        )
        fetcher = FeedFetcher(cache, session=session)

        feed = fetcher.parse_feed(FEED_URL)

        assert feed.url == FEED_URL
        assert feed.title == "Example Blog"
        assert feed.description == "Notes from example land"
        assert feed.link == "https://example.com/"
        assert feed.image_url == "https://example.com/logo.png"
        assert feed.published == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)

        first, second = feed.items
        assert first.title == "First Post"
        assert first.link == "https://example.com/posts/first"
        assert first.description == "Hello there"
        assert "full body of the first post" in first.content
        assert first.published == datetime(2024, 1, 2, 8, 30, tzinfo=UTC)
        assert first.guid == "https://example.com/posts/first"
        assert second.published is None
        assert second.description == "Plain text summary"

    def test_atom_1_0_parsing(self, session, cache):
        session.get.return_value = make_response(
            content_type="application/atom+xml", content=ATOM_DOCUMENT
        )

        feed = FeedFetcher(cache, session=session).parse_feed(FEED_URL)

        assert feed.title == "Atom Example"
        assert feed.description == "An Atom feed"
        assert feed.link == "https://atom.example.org/"
        assert feed.image_url is None

        (entry,) = feed.items
        assert entry.title == "Atom Entry"
        assert entry.link == "https://atom.example.org/entry"
        assert entry.description == "Short summary"
        assert entry.published == datetime(2024, 1, 30, 9, 0, tzinfo=UTC)
        assert entry.updated == datetime(2024, 2, 1, 11, 0, tzinfo=UTC)

    def test_fetch_strips_item_content(self, session, cache):
        session.get.return_value = make_response(content=RSS_DOCUMENT)

        feed = FeedFetcher(cache, session=session).fetch_feed(FEED_URL)

        assert len(feed.items) == 2
        assert all(item.content == "" for item in feed.items)
        assert feed.items[0].description == "Hello there"
        assert cache.get(FEED_URL) == feed

    def test_second_fetch_served_from_cache(self, session, cache):
        session.get.return_value = make_response(content=RSS_DOCUMENT)
        fetcher = FeedFetcher(cache, session=session)

        first = fetcher.fetch_feed(FEED_URL)
        second = fetcher.fetch_feed(FEED_URL)

        assert first == second
        assert session.get.call_count == 1

    def test_refetch_after_expiry(self, session, cache, clock):
        session.get.return_value = make_response(content=RSS_DOCUMENT)
        fetcher = FeedFetcher(cache, session=session)

        fetcher.fetch_feed(FEED_URL)
        clock.advance(19 * 60 + 1)
        fetcher.fetch_feed(FEED_URL)

        assert session.get.call_count == 2

    def test_http_error_raises_and_is_not_cached(self, session, cache):
        session.get.return_value = make_response(status_code=404)
        fetcher = FeedFetcher(cache, session=session)

        with pytest.raises(FeedDownloadError) as exc_info:
            fetcher.fetch_feed(FEED_URL)

        assert exc_info.value.feed_url == FEED_URL
        assert FEED_URL not in cache

    def test_network_error_raises_fetch_error(self, session, cache):
        session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(FeedFetchError):
            FeedFetcher(cache, session=session).fetch_feed(FEED_URL)

    def test_malformed_document_raises_parse_error(self, session, cache):
        session.get.return_value = make_response(
            content_type="text/plain", content=b"this is not a feed"
        )

        with pytest.raises(FeedParseError):
            FeedFetcher(cache, session=session).fetch_feed(FEED_URL)

        assert len(cache) == 0

    def test_json_feed_parsing(self, session, cache):
        session.get.return_value = make_response(
            content_type="application/feed+json", content=JSON_FEED_DOCUMENT
        )

        feed = FeedFetcher(cache, session=session).parse_feed(JSON_URL)

        assert feed.url == JSON_URL
        assert feed.title == "JSON Example"
        assert feed.description == "A JSON feed"
        assert feed.link == "https://json.example.org/"
        assert feed.image_url == "https://json.example.org/icon.png"
        assert feed.published is None

        first, second = feed.items
        assert first.title == "JSON Entry"
        assert first.link == "https://json.example.org/entry"
        assert first.description == "Entry summary"
        assert first.content == "<p>Full JSON body</p>"
        assert first.published == datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
        assert first.updated == datetime(2024, 3, 2, 9, 30, tzinfo=UTC)
        assert first.guid == "1"
        assert second.title == ""
        assert second.description == "Only plain text"
        assert second.published is None
        assert second.guid == "2"

    def test_json_feed_detected_without_content_type(self, session, cache):
        session.get.return_value = make_response(content=JSON_FEED_DOCUMENT)

        feed = FeedFetcher(cache, session=session).parse_feed(JSON_URL)

        assert feed.title == "JSON Example"
        assert len(feed.items) == 2

    def test_json_feed_fetch_strips_and_caches(self, session, cache):
        session.get.return_value = make_response(
            content_type="application/json", content=JSON_FEED_DOCUMENT
        )
        fetcher = FeedFetcher(cache, session=session)

        first = fetcher.fetch_feed(JSON_URL)
        second = fetcher.fetch_feed(JSON_URL)

        assert first == second
        assert session.get.call_count == 1
        assert all(item.content == "" for item in first.items)
        assert first.items[0].description == "Entry summary"
        assert cache.get(JSON_URL) == first

    @pytest.mark.parametrize(
        "content",
        [
            b'{"title": "no version", "items": []}',
            b'{"version": "1.0", "items": []}',
            b"[1, 2, 3]",
            b"{not json",
        ],
    )
    def test_json_that_is_not_a_json_feed_raises(self, session, cache, content):
        session.get.return_value = make_response(
            content_type="application/json", content=content
        )

        with pytest.raises(FeedParseError):
            FeedFetcher(cache, session=session).fetch_feed(JSON_URL)

        assert JSON_URL not in cache

    def test_well_formed_xml_that_is_not_a_feed_raises(self, session, cache):
        session.get.return_value = make_response(
            content_type="application/xml", content=NON_FEED_XML
        )

        with pytest.raises(FeedParseError):
            FeedFetcher(cache, session=session).fetch_feed(FEED_URL)

        assert len(cache) == 0

    def test_supplied_session_headers_untouched(self, session, cache):
        FeedFetcher(cache, session=session)

        assert session.headers == {}

    def test_own_session_carries_user_agent(self, cache):
        fetcher = FeedFetcher(cache, HttpConfig(user_agent="agent/2.0"))

        assert fetcher.session.headers["User-Agent"] == "agent/2.0"

    def test_timeout_passed_to_session(self, session, cache):
        session.get.return_value = make_response(content=RSS_DOCUMENT)

        FeedFetcher(cache, session=session).fetch_feed(FEED_URL)

        session.get.assert_called_once_with(FEED_URL, timeout=5.0)

    def test_html_cleaning_specific_cases(self, cache):
        fetcher = FeedFetcher(cache)

        test_cases = [
            ("<p>Simple paragraph</p>", "Simple paragraph"),
            ("<div><h1>Title</h1><p>Content</p></div>", "Title Content"),
            ("<script>alert('xss')</script><p>Safe content</p>", "Safe content"),
            ("Plain text without HTML", "Plain text without HTML"),
            ("<p>Multiple  \n\n  spaces   and\tlines</p>", "Multiple spaces and lines"),
            ("", ""),
            ("<p><br/></p>", ""),
        ]

        for html_input, expected_output in test_cases:
            assert fetcher.clean_html_content(html_input) == expected_output
