"""Best-effort collection of external stylesheets.

Each stylesheet is an independent, individually timed-out fetch.  A failure
is logged and contributes an empty string; it never fails the page.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from pagecapture.errors import FetchError
from pagecapture.extractors.urlnorm import normalize_url
from pagecapture.fetcher import fetch_html
from pagecapture.items import FetchOptions

logger = logging.getLogger(__name__)

# Worker threads per page, independent of how many stylesheets are fetched
_MAX_WORKERS = 4


def fetch_stylesheet(url: str, options: FetchOptions) -> str:
    """Return the text of one stylesheet, or ``""`` on any failure."""
    try:
        result = fetch_html(normalize_url(url), options)
    except FetchError as exc:
        logger.warning("Failed to fetch CSS from %s: %s", url, exc)
        return ""
    if not result.ok:
        logger.warning("Failed to fetch CSS from %s: HTTP %d", url, result.status)
        return ""
    return result.text


def collect_stylesheets(urls: list[str], options: FetchOptions | None = None) -> str:
    """Fetch up to ``options.max_stylesheets`` of *urls* and join their CSS.

    Args:
        urls:    Absolute stylesheet URLs in document order.
        options: The page's fetch options; ``stylesheet_timeout_ms`` replaces
                 ``timeout_ms`` for these requests.

    Returns:
        Newline-joined CSS in input order; failed entries are skipped.
    """
    options = options or FetchOptions()
    selected = urls[: options.max_stylesheets]
    if not selected:
        return ""

    css_options = options.model_copy(update={"timeout_ms": options.stylesheet_timeout_ms})
    if len(urls) > len(selected):
        logger.debug("fetching %d of %d stylesheets", len(selected), len(urls))

    with ThreadPoolExecutor(max_workers=min(_MAX_WORKERS, len(selected))) as executor:
        sheets = list(executor.map(lambda u: fetch_stylesheet(u, css_options), selected))

    return "\n".join(sheet for sheet in sheets if sheet)
