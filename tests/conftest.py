"""Shared pytest fixtures."""

from __future__ import annotations

from email.message import Message
from pathlib import Path
from unittest.mock import MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

PAGE_URL = "https://example.com/landing/index.html"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def make_headers(content_type: str = "text/html; charset=utf-8", **extra: str) -> Message:
    headers = Message()
    headers["Content-Type"] = content_type
    for name, value in extra.items():
        headers[name.replace("_", "-")] = value
    return headers


def make_response(
    body: bytes | str,
    *,
    url: str = "https://example.com/",
    status: int = 200,
    reason: str = "OK",
    headers: Message | None = None,
) -> MagicMock:
    """Return a mock urllib response that yields *body* in one chunk."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    resp = MagicMock()
    resp.read1.side_effect = [body, b""]
    resp.status = status
    resp.reason = reason
    resp.headers = headers if headers is not None else make_headers()
    resp.geturl.return_value = url
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


def make_opener(*responses: object) -> MagicMock:
    """Return a mock opener whose ``open`` returns (or raises) *responses* in order."""
    opener = MagicMock()
    opener.open.side_effect = list(responses)
    return opener


@pytest.fixture
def page_html() -> str:
    return _read_fixture("page.html")


@pytest.fixture
def malformed_html() -> str:
    return _read_fixture("malformed.html")
