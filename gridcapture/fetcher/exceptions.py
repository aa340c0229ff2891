class FetchError(Exception):
    """Base exception for all fetcher errors."""


class TransientFetchError(FetchError):
    """Raised when an HTTP request fails at the network or status level."""


class DecodeError(FetchError):
    """Raised when a response is not JSON or its body cannot be parsed."""


class PageLimitExceeded(FetchError):
    """Raised when a crawl reaches its page ceiling."""
