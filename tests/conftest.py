"""Shared fixtures for feedrelay tests."""

from unittest.mock import Mock

import pytest
import requests

RSS_DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example Blog</title>
    <link>https://example.com/</link>
    <description>Notes from &lt;b&gt;example&lt;/b&gt; land</description>
    <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
    <image>
      <url>https://example.com/logo.png</url>
      <title>Example Blog</title>
      <link>https://example.com/</link>
    </image>
    <item>
      <title>First Post</title>
      <link>https://example.com/posts/first</link>
      <description>&lt;p&gt;Hello there&lt;/p&gt;</description>
      <content:encoded><![CDATA[<p>The full body of the first post</p>]]></content:encoded>
      <pubDate>Tue, 02 Jan 2024 08:30:00 GMT</pubDate>
      <guid>https://example.com/posts/first</guid>
    </item>
    <item>
      <title>Second Post</title>
      <link>https://example.com/posts/second</link>
      <description>Plain text summary</description>
      <content:encoded><![CDATA[<p>The full body of the second post</p>]]></content:encoded>
    </item>
  </channel>
</rss>
"""

ATOM_DOCUMENT = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <subtitle>An Atom feed</subtitle>
  <link rel="alternate" href="https://atom.example.org/"/>
  <id>urn:uuid:60a76c80-d399-11d9-b93C-0003939e0af6</id>
  <updated>2024-02-01T12:00:00Z</updated>
  <entry>
    <title>Atom Entry</title>
    <link rel="alternate" href="https://atom.example.org/entry"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <published>2024-01-30T09:00:00Z</published>
    <updated>2024-02-01T11:00:00Z</updated>
    <summary>Short summary</summary>
    <content type="html">&lt;p&gt;Long content&lt;/p&gt;</content>
  </entry>
</feed>
"""

JSON_FEED_DOCUMENT = b"""{
  "version": "https://jsonfeed.org/version/1.1",
  "title": "JSON Example",
  "description": "A <i>JSON</i> feed",
  "home_page_url": "https://json.example.org/",
  "feed_url": "https://json.example.org/feed.json",
  "icon": "https://json.example.org/icon.png",
  "items": [
    {
      "id": "1",
      "title": "JSON Entry",
      "url": "https://json.example.org/entry",
      "summary": "Entry summary",
      "content_html": "<p>Full JSON body</p>",
      "date_published": "2024-03-01T09:00:00Z",
      "date_modified": "2024-03-02T10:30:00+01:00"
    },
    {
      "id": 2,
      "url": "https://json.example.org/untitled",
      "content_text": "Only plain text"
    }
  ]
}
"""

NON_FEED_XML = b"<foo><bar>1</bar></foo>"

HTML_WITH_RSS_LINK = b"""<!DOCTYPE html>
<html>
  <head>
    <title>Example Blog</title>
    <link rel="stylesheet" href="/style.css">
    <link rel="alternate" type="application/rss+xml" href="/feed.xml">
  </head>
  <body><p>Welcome</p></body>
</html>
"""


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(
    status_code: int = 200, content_type: str = "", content: bytes = b""
) -> Mock:
    """Build a fake requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.headers = {"Content-Type": content_type} if content_type else {}
    response.content = content
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error"
        )
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    """A fake requests.Session with head/get to be configured per test."""
    fake = Mock()
    fake.headers = {}
    return fake
