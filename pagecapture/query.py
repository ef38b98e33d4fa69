"""pagecapture.query - single-URL, retrying and batch capture API.

Basic usage::

    from pagecapture.query import fetch_website_content

    page = fetch_website_content("example.com")
    if page.error:
        print("failed:", page.error)
    else:
        print(page.title)
        print(page.images)

Raising variant with retries::

    from pagecapture.query import fetch_with_retry

    page = fetch_with_retry("https://example.com", max_retries=3)

Low-level access::

    from pagecapture.query import extract
    from pagecapture.fetcher import fetch_html

    result = fetch_html("https://example.com/")
    page = extract(result.text, url=result.url)

Two failure conventions exist on purpose: :func:`fetch_website_content` and
:func:`fetch_multiple_urls` never raise for pipeline failures and report them
in ``WebsiteContent.error``; :func:`fetch_with_retry` raises the last
:class:`~pagecapture.errors.FetchError` once its attempts are exhausted.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from pagecapture import settings
from pagecapture.errors import BlockedHostError, FetchError, HttpError, InvalidUrlError
from pagecapture.extractors.content import ExtractedContent, extract_content
from pagecapture.extractors.document import parse_document
from pagecapture.extractors.sanitize import sanitize_document
from pagecapture.extractors.urlnorm import normalize_url
from pagecapture.fetcher import fetch_html
from pagecapture.items import FetchOptions, WebsiteContent
from pagecapture.stylesheets import collect_stylesheets

logger = logging.getLogger(__name__)

# Deterministic failures: retrying cannot change the outcome
_NON_RETRYABLE: tuple[type[FetchError], ...] = (InvalidUrlError, BlockedHostError)


def _build_record(
    url: str,
    content: ExtractedContent,
    html: str,
    external_css: str = "",
) -> WebsiteContent:
    css = "\n".join(part for part in (content.css, external_css) if part)
    return WebsiteContent(
        url=url,
        title=content.title,
        html=html,
        css=css,
        text=content.text,
        metadata=content.metadata,
        images=content.images,
        links=content.links,
        scripts=content.scripts,
        stylesheets=content.stylesheets,
    )


# ---------------------------------------------------------------------------
# Extraction (pure HTML → WebsiteContent, no network)
# ---------------------------------------------------------------------------

def extract(html: str, *, url: str = "") -> WebsiteContent:
    """Parse, extract and sanitize *html* without any network access.

    Args:
        html: Raw HTML of the page.
        url:  URL the HTML came from; relative references resolve against it.

    Returns:
        :class:`~pagecapture.items.WebsiteContent` without external CSS.
    """
    doc = parse_document(html)
    content = extract_content(doc, url)
    return _build_record(url, content, sanitize_document(doc, url))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _capture(url: str, options: FetchOptions) -> WebsiteContent:
    """Run normalize → fetch → parse → extract → sanitize, raising on failure."""
    normalized = normalize_url(url)
    result = fetch_html(normalized, options)
    if not result.ok:
        # Only reachable for a 3xx when redirects are not followed
        raise HttpError(normalized, result.status, result.reason)

    page_url = result.url
    doc = parse_document(result.text)
    content = extract_content(doc, page_url)

    external_css = ""
    if options.include_external_css and content.stylesheets:
        external_css = collect_stylesheets(content.stylesheets, options)

    html = sanitize_document(doc, page_url)
    return _build_record(page_url, content, html, external_css)


def fetch_website_content(url: str, options: FetchOptions | None = None) -> WebsiteContent:
    """Fetch *url* and return its extracted, sanitized content.

    Never raises for pipeline failures.  On failure the returned record has
    ``error`` set and only ``url`` populated (the normalized URL when
    normalization succeeded, otherwise the input).

    Args:
        url:     Any URL string; ``https://`` is assumed when no scheme is given.
        options: :class:`~pagecapture.items.FetchOptions`; defaults apply
                 when omitted.

    Example::

        page = fetch_website_content("https://example.com")
        print(page.title, len(page.links))
    """
    options = options or FetchOptions()
    logger.info("fetch_website_content: %s", url)
    try:
        return _capture(url, options)
    except FetchError as exc:
        logger.warning("fetch_website_content: %s failed: %s", url, exc)
        return WebsiteContent.failure(exc.url or url, str(exc))
    except Exception as exc:
        logger.exception("fetch_website_content: unexpected error for %s", url)
        return WebsiteContent.failure(url, str(exc) or type(exc).__name__)


# ---------------------------------------------------------------------------
# Retry API
# ---------------------------------------------------------------------------

def fetch_with_retry(
    url: str,
    max_retries: int = settings.MAX_RETRIES,
    options: FetchOptions | None = None,
    *,
    backoff_base: float = settings.BACKOFF_BASE,
) -> WebsiteContent:
    """Capture *url*, retrying failed attempts with exponential backoff.

    After failed attempt *n* (counted from 1) the call sleeps
    ``backoff_base * 2 ** (n - 1)`` seconds (1s, 2s, 4s, … by default) if
    another attempt remains.  Invalid and blocked URLs fail immediately.

    Args:
        url:          Any URL string accepted by :func:`fetch_website_content`.
        max_retries:  Total number of attempts (default 3, minimum 1).
        options:      Fetch options shared by every attempt.
        backoff_base: Delay in seconds after the first failed attempt.

    Returns:
        The first successful :class:`~pagecapture.items.WebsiteContent`.

    Raises:
        :class:`~pagecapture.errors.FetchError`: The error of the last
            attempt, once all attempts failed.
        ValueError: If *max_retries* is less than 1.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1; got {max_retries}")
    options = options or FetchOptions()

    last_exc: FetchError | None = None
    for attempt in range(1, max_retries + 1):
        try:
            page = _capture(url, options)
        except _NON_RETRYABLE:
            raise
        except FetchError as exc:
            last_exc = exc
        else:
            if attempt > 1:
                logger.info("fetch_with_retry: %s succeeded on attempt %d", url, attempt)
            return page

        if attempt < max_retries:
            delay = backoff_base * 2 ** (attempt - 1)
            logger.warning(
                "fetch_with_retry: attempt %d/%d for %s failed (%s) - retrying in %.1fs",
                attempt, max_retries, url, last_exc, delay,
            )
            time.sleep(delay)

    logger.warning("fetch_with_retry: all %d attempts failed for %s", max_retries, url)
    assert last_exc is not None  # loop ran at least once and never returned
    raise last_exc


# ---------------------------------------------------------------------------
# Batch API
# ---------------------------------------------------------------------------

def fetch_multiple_urls(
    urls: list[str],
    options: FetchOptions | None = None,
    *,
    max_workers: int | None = None,
) -> list[WebsiteContent]:
    """Capture every URL in parallel and return one record per URL.

    Results are returned in the same order as *urls* regardless of which
    requests finish first.  A failing URL yields an error record and does not
    affect the others.

    Args:
        urls:        URL strings to capture.
        options:     Fetch options shared by every URL.
        max_workers: Thread cap; by default every URL gets its own thread.

    Example::

        pages = fetch_multiple_urls(["example.com", "example.org"])
        failed = [p.url for p in pages if p.error]
    """
    if not urls:
        return []

    # Preserve input order: slot results by original index
    results: list[WebsiteContent | None] = [None] * len(urls)
    with ThreadPoolExecutor(max_workers=max_workers or len(urls)) as executor:
        futures = {
            executor.submit(fetch_website_content, url, options): i
            for i, url in enumerate(urls)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    failed = sum(1 for r in results if r is not None and r.error)
    if failed:
        logger.warning("fetch_multiple_urls: %d of %d URLs failed", failed, len(urls))
    return [r for r in results if r is not None]
