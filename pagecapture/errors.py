"""Exception hierarchy for the capture pipeline.

Every failure the pipeline can report is a :class:`FetchError` subclass, so
callers of :func:`~pagecapture.query.fetch_with_retry` can catch one type and
still branch on the specific kind.
"""

from __future__ import annotations


class FetchError(RuntimeError):
    """Raised when a URL cannot be fetched or processed.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(self, message: str, url: str = "", status: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class InvalidUrlError(FetchError):
    """The input is not a parseable http(s) URL."""


class BlockedHostError(FetchError):
    """The URL targets a local or private-network host."""


class FetchTimeoutError(FetchError):
    """The request did not complete within the configured duration."""

    def __init__(self, url: str, timeout_ms: int) -> None:
        super().__init__(f"Request timeout after {timeout_ms}ms", url=url)
        self.timeout_ms = timeout_ms


class HttpError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status: int, status_text: str = "") -> None:
        message = f"HTTP {status}: {status_text}" if status_text else f"HTTP {status}"
        super().__init__(message, url=url, status=status)
        self.status_text = status_text


class TransportError(FetchError):
    """DNS, connection or body-decoding failure below the HTTP layer."""


class ParseError(FetchError):
    """The document could not be parsed.

    Reserved: the lenient parser recovers from malformed markup, so this is
    only raised when the parser itself fails unexpectedly.
    """


class EnhancementError(FetchError):
    """The AI enhancement service call failed."""
