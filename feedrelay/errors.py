"""Error types for feedrelay."""


class FeedRelayError(Exception):
    """Base class for all feedrelay errors."""


class ConfigurationError(FeedRelayError):
    """Raised when required configuration is missing or invalid."""


class FeedFetchError(FeedRelayError):
    """Raised when a feed document cannot be fetched or parsed.

    Attributes:
        feed_url: URL of the feed that failed
    """

    def __init__(self, message: str, feed_url: str):
        super().__init__(message)
        self.feed_url = feed_url


class FeedDownloadError(FeedFetchError):
    """Network failure, timeout or non-success HTTP status."""


class FeedParseError(FeedFetchError):
    """The downloaded document is not a readable feed."""
