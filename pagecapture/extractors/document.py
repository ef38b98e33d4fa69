"""Queryable, mutable HTML document built on BeautifulSoup + lxml.

The extractor and the sanitizer only talk to the page through
:class:`Document`, so they never depend on BeautifulSoup details such as
multi-valued attributes or ``NavigableString`` children.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from pagecapture.errors import ParseError

logger = logging.getLogger(__name__)

_PARSER = "lxml"


def _attr_to_str(val: object) -> str | None:
    """Flatten a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return None
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


class Document:
    """A parsed page supporting selector lookup and in-place mutation."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self._soup = soup

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        """Return every element matching the CSS *selector*, in document order."""
        scope = root if root is not None else self._soup
        return [el for el in scope.select(selector) if isinstance(el, Tag)]

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        scope = root if root is not None else self._soup
        el = scope.select_one(selector)
        return el if isinstance(el, Tag) else None

    @property
    def body(self) -> Tag | None:
        body = self._soup.find("body")
        return body if isinstance(body, Tag) else None

    @property
    def base_href(self) -> str | None:
        """Return the ``href`` of the first ``<base>`` element, if any."""
        base = self.select_one("base[href]")
        if base is None:
            return None
        return (self.attr(base, "href") or "").strip() or None

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    @staticmethod
    def attr(node: Tag, name: str) -> str | None:
        return _attr_to_str(node.get(name))

    @staticmethod
    def set_attr(node: Tag, name: str, value: str) -> None:
        node[name] = value

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    @staticmethod
    def remove(node: Tag) -> None:
        node.decompose()

    def remove_all(self, selector: str) -> int:
        """Remove every element matching *selector*; return how many were removed."""
        nodes = self.select(selector)
        for node in nodes:
            # A node nested inside an earlier match is already gone with it
            if not node.decomposed:
                node.decompose()
        return len(nodes)

    @staticmethod
    def set_inner_html(node: Tag, markup: str) -> None:
        node.clear()
        fragment = BeautifulSoup(markup, "html.parser")
        for child in list(fragment.contents):
            node.append(child.extract())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def text(node: Tag) -> str:
        return node.get_text()

    @staticmethod
    def html(node: Tag) -> str:
        """Return the outer markup of *node*."""
        return str(node)

    @staticmethod
    def inner_html(node: Tag) -> str:
        return node.decode_contents()

    def serialize(self) -> str:
        return str(self._soup)


def parse_document(html: str) -> Document:
    """Parse *html* leniently into a :class:`Document`.

    Malformed markup (unclosed tags, stray quotes, missing ``<html>``) is
    repaired the way lxml's HTML parser repairs it.

    Raises:
        ParseError: Only if the parser itself fails.
    """
    try:
        soup = BeautifulSoup(html or "", _PARSER)
    except Exception as exc:
        logger.debug("HTML parse failed: %s", exc)
        raise ParseError(f"Could not parse document: {exc}") from exc
    return Document(soup)
