"""Content extraction: title, metadata, styles, URL inventories and text.

The steps run in a fixed order.  Style text and every URL inventory are
read before ``<script>``, ``<style>`` and ``<noscript>`` are removed for the
text pass, and the sanitizer (which strips far more) only runs afterwards.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from bs4 import Tag

from pagecapture.extractors.document import Document
from pagecapture.extractors.metadata import extract_metadata, extract_title
from pagecapture.extractors.urlnorm import resolve_url
from pagecapture.items import PageMetadata

logger = logging.getLogger(__name__)

# <a href> prefixes that never enter the link inventory
_EXCLUDED_LINK_PREFIXES: tuple[str, ...] = ("#", "mailto:", "tel:")

# Elements dropped before the visible-text pass
_NON_TEXT_SELECTOR = "script, style, noscript"


class ExtractedContent(NamedTuple):
    title: str
    metadata: PageMetadata
    css: str
    stylesheets: list[str]
    images: list[str]
    links: list[str]
    scripts: list[str]
    text: str


def _is_stylesheet_link(tag: Tag) -> bool:
    # rel is multi-valued in BS4: <link rel="alternate stylesheet"> counts too
    rel = tag.get("rel")
    values = rel if isinstance(rel, list) else str(rel or "").split()
    return any(v.lower() == "stylesheet" for v in values)


def stylesheet_links(doc: Document) -> list[Tag]:
    """Return every ``<link rel="stylesheet">`` element in document order."""
    return [tag for tag in doc.select("link[rel]") if _is_stylesheet_link(tag)]


def effective_base_url(doc: Document, page_url: str) -> str:
    """Return the base URL for relative references in *doc*.

    A ``<base href>`` wins over the page URL; it is itself resolved against
    the page URL first.
    """
    base_href = doc.base_href
    if base_href:
        return resolve_url(base_href, page_url)
    return page_url


# ---------------------------------------------------------------------------
# Individual extraction steps
# ---------------------------------------------------------------------------

def extract_inline_css(doc: Document) -> str:
    """Concatenate every ``<style>`` block, newline-joined, in document order."""
    blocks = [doc.inner_html(style) for style in doc.select("style")]
    return "\n".join(blocks)


def extract_stylesheet_urls(doc: Document, base_url: str) -> list[str]:
    urls: list[str] = []
    for link in stylesheet_links(doc):
        href = (doc.attr(link, "href") or "").strip()
        if href:
            urls.append(resolve_url(href, base_url))
    return urls


def _collect(doc: Document, selector: str, attribute: str, base_url: str) -> list[str]:
    urls: list[str] = []
    for tag in doc.select(selector):
        value = (doc.attr(tag, attribute) or "").strip()
        if value:
            urls.append(resolve_url(value, base_url))
    return urls


def extract_images(doc: Document, base_url: str) -> list[str]:
    """Return absolute ``<img src>`` URLs; duplicates are kept."""
    return _collect(doc, "img[src]", "src", base_url)


def extract_scripts(doc: Document, base_url: str) -> list[str]:
    return _collect(doc, "script[src]", "src", base_url)


def extract_links(doc: Document, base_url: str) -> list[str]:
    """Return absolute ``<a href>`` URLs, skipping fragment, mailto and tel targets."""
    links: list[str] = []
    for a in doc.select("a[href]"):
        href = (doc.attr(a, "href") or "").strip()
        if not href or href.lower().startswith(_EXCLUDED_LINK_PREFIXES):
            continue
        links.append(resolve_url(href, base_url))
    return links


def extract_text(doc: Document) -> str:
    """Strip non-visible elements, then return the collapsed ``<body>`` text.

    Mutates *doc*: ``<script>``, ``<style>`` and ``<noscript>`` are removed.
    """
    removed = doc.remove_all(_NON_TEXT_SELECTOR)
    logger.debug("removed %d script/style/noscript elements before text pass", removed)
    body = doc.body
    if body is None:
        return ""
    return " ".join(doc.text(body).split())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_content(doc: Document, base_url: str) -> ExtractedContent:
    """Run every extraction step over *doc* in order.

    Args:
        doc:      Parsed page.  Its script/style/noscript elements are
                  removed by the final text step.
        base_url: URL the page was fetched from.  A ``<base href>`` in the
                  document takes precedence.

    Returns:
        :class:`ExtractedContent` with every non-markup field of the record.
    """
    base_url = effective_base_url(doc, base_url)

    title = extract_title(doc)
    metadata = extract_metadata(doc)
    css = extract_inline_css(doc)
    stylesheets = extract_stylesheet_urls(doc, base_url)
    images = extract_images(doc, base_url)
    links = extract_links(doc, base_url)
    scripts = extract_scripts(doc, base_url)
    text = extract_text(doc)

    logger.debug(
        "extracted %d images, %d links, %d scripts, %d stylesheets from %s",
        len(images), len(links), len(scripts), len(stylesheets), base_url,
    )
    return ExtractedContent(
        title=title,
        metadata=metadata,
        css=css,
        stylesheets=stylesheets,
        images=images,
        links=links,
        scripts=scripts,
        text=text,
    )
