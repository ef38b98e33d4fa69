"""Title and ``<meta>`` tag extraction.

Each field takes the first matching tag; later matches are ignored.

Priority chains (highest → lowest):
    title       <title> → first <h1> → "Untitled"
    description <meta name="description"> → <meta property="og:description">
    charset     <meta charset> → <meta http-equiv="Content-Type">
"""

from __future__ import annotations

from pagecapture.extractors.document import Document
from pagecapture.items import PageMetadata

DEFAULT_TITLE = "Untitled"

# field → (selector, attribute) candidates, tried in order
_META_LOOKUPS: dict[str, tuple[tuple[str, str], ...]] = {
    "description": (
        ('meta[name="description"]', "content"),
        ('meta[property="og:description"]', "content"),
    ),
    "keywords": (('meta[name="keywords"]', "content"),),
    "author": (('meta[name="author"]', "content"),),
    "viewport": (('meta[name="viewport"]', "content"),),
    "charset": (
        ("meta[charset]", "charset"),
        ('meta[http-equiv="Content-Type" i]', "content"),
    ),
}


def _first(*values: str | None) -> str | None:
    """Return the first non-empty value."""
    for v in values:
        if v:
            return v
    return None


def extract_title(doc: Document) -> str:
    """Return the ``<title>`` text, else the first ``<h1>`` text, else ``"Untitled"``."""
    title_tag = doc.select_one("title")
    h1_tag = doc.select_one("h1")
    title = _first(
        doc.text(title_tag).strip() if title_tag is not None else None,
        doc.text(h1_tag).strip() if h1_tag is not None else None,
    )
    return title or DEFAULT_TITLE


def _lookup(doc: Document, candidates: tuple[tuple[str, str], ...]) -> str | None:
    values: list[str | None] = []
    for selector, attribute in candidates:
        tag = doc.select_one(selector)
        values.append(doc.attr(tag, attribute) if tag is not None else None)
    return _first(*values)


def extract_metadata(doc: Document) -> PageMetadata:
    """Extract description, keywords, author, viewport and charset from *doc*."""
    return PageMetadata(
        **{field: _lookup(doc, candidates) for field, candidates in _META_LOOKUPS.items()},
    )
