"""Destructive sanitization pass producing the returned body markup.

Runs after :func:`~pagecapture.extractors.content.extract_content`: style
text and the URL inventories must already have been captured, because this
pass deletes the elements they were read from.
"""

from __future__ import annotations

import logging

from pagecapture.extractors.content import effective_base_url, stylesheet_links
from pagecapture.extractors.document import Document
from pagecapture.extractors.urlnorm import is_absolute_url, resolve_url

logger = logging.getLogger(__name__)

# Executable / embedded content, removed first and in this order
_EXECUTABLE_TAGS: tuple[str, ...] = ("script", "noscript", "iframe", "embed", "object")

# <a href> values that are left alone by the rewrite pass
_UNTOUCHED_HREF_PREFIXES: tuple[str, ...] = ("#", "mailto:", "tel:")


def strip_executable_content(doc: Document) -> int:
    """Remove script/noscript/iframe/embed/object, then stylesheet links and styles."""
    removed = 0
    for tag_name in _EXECUTABLE_TAGS:
        removed += doc.remove_all(tag_name)
    for link in stylesheet_links(doc):
        if not link.decomposed:
            doc.remove(link)
            removed += 1
    removed += doc.remove_all("style")
    return removed


def absolutize_urls(doc: Document, base_url: str) -> int:
    """Rewrite relative ``<img src>`` and ``<a href>`` values to absolute URLs.

    Absolute values (any scheme, including ``data:``) are left unchanged, so
    running this twice gives the same result as running it once.

    Returns:
        Number of attributes rewritten.
    """
    rewritten = 0

    for img in doc.select("img[src]"):
        src = (doc.attr(img, "src") or "").strip()
        if not src or is_absolute_url(src):
            continue
        resolved = resolve_url(src, base_url)
        if resolved != src:
            doc.set_attr(img, "src", resolved)
            rewritten += 1

    for a in doc.select("a[href]"):
        href = (doc.attr(a, "href") or "").strip()
        if not href or href.lower().startswith(_UNTOUCHED_HREF_PREFIXES):
            continue
        if is_absolute_url(href):
            continue
        resolved = resolve_url(href, base_url)
        if resolved != href:
            doc.set_attr(a, "href", resolved)
            rewritten += 1

    return rewritten


def sanitize_document(doc: Document, base_url: str) -> str:
    """Sanitize *doc* in place and return the inner markup of ``<body>``.

    Returns an empty string when the document has no body.
    """
    base_url = effective_base_url(doc, base_url)
    removed = strip_executable_content(doc)
    rewritten = absolutize_urls(doc, base_url)
    logger.debug(
        "sanitized %s: removed %d elements, rewrote %d URLs", base_url, removed, rewritten,
    )
    body = doc.body
    return doc.inner_html(body) if body is not None else ""
