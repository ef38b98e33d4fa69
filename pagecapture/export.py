"""Writers for captured pages: JSON records and standalone HTML documents."""

from __future__ import annotations

import html as html_lib
import json
import logging
from pathlib import Path

from pagecapture.items import WebsiteContent

logger = logging.getLogger(__name__)

_STANDALONE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{css}
    </style>
</head>
<body>
{body}
</body>
</html>
"""


def render_standalone_html(body: str, css: str = "", title: str = "Captured Website") -> str:
    """Wrap *body* markup and *css* in a complete, self-contained HTML5 document."""
    # A literal </style> inside the CSS would close the element early
    safe_css = css.replace("</style", "<\\/style")
    return _STANDALONE_TEMPLATE.format(
        title=html_lib.escape(title or "Captured Website"),
        css=safe_css,
        body=body,
    )


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_record(page: WebsiteContent, path: Path) -> Path:
    """Write *page* as pretty-printed JSON to *path*."""
    _write_text(path, json.dumps(page.model_dump(), indent=2, ensure_ascii=False))
    logger.debug("wrote record %s", path)
    return path


def write_standalone(page: WebsiteContent, path: Path) -> Path:
    """Write *page* as a standalone HTML document to *path*.

    Raises:
        ValueError: If *page* is an error record.
    """
    if page.error:
        raise ValueError(f"cannot export failed capture of {page.url}: {page.error}")
    _write_text(path, render_standalone_html(page.html, page.css, page.title))
    logger.debug("wrote standalone document %s", path)
    return path
