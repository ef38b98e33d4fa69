"""pagecapture - fetch a web page and extract sanitized, structured content.

Quick single-URL usage::

    from pagecapture import fetch_website_content

    page = fetch_website_content("example.com")
    print(page.title)
    print(page.css)
    print(page.images)

Retrying, raising variant::

    from pagecapture import FetchError, fetch_with_retry

    try:
        page = fetch_with_retry("https://example.com", max_retries=3)
    except FetchError as exc:
        print("gave up:", exc)

Batch::

    from pagecapture import fetch_multiple_urls

    pages = fetch_multiple_urls(["example.com", "example.org"])
"""

from pagecapture.errors import (
    BlockedHostError,
    FetchError,
    FetchTimeoutError,
    HttpError,
    InvalidUrlError,
    ParseError,
    TransportError,
)
from pagecapture.extractors.urlnorm import normalize_url
from pagecapture.fetcher import FetchResult, fetch_html
from pagecapture.items import FetchOptions, PageMetadata, WebsiteContent
from pagecapture.query import (
    extract,
    fetch_multiple_urls,
    fetch_website_content,
    fetch_with_retry,
)

__version__ = "0.1.0"
__all__ = [
    "BlockedHostError",
    "FetchError",
    "FetchOptions",
    "FetchResult",
    "FetchTimeoutError",
    "HttpError",
    "InvalidUrlError",
    "PageMetadata",
    "ParseError",
    "TransportError",
    "WebsiteContent",
    "extract",
    "fetch_html",
    "fetch_multiple_urls",
    "fetch_website_content",
    "fetch_with_retry",
    "normalize_url",
]
