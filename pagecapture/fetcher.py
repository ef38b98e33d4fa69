"""Bounded HTTP fetcher.

One outbound GET per call through a private ``urllib`` opener.  The request
is bounded by a socket timeout plus an overall read deadline, the response
is always closed, and transport failures come back as typed
:mod:`pagecapture.errors` exceptions.  There are no retries here; see
:func:`pagecapture.query.fetch_with_retry`.
"""

from __future__ import annotations

import gzip
import http.client
import logging
import socket
import time
import urllib.error
import urllib.request
import zlib
from typing import Any, NamedTuple
from urllib.parse import urlsplit

from pagecapture.errors import (
    BlockedHostError,
    FetchError,
    FetchTimeoutError,
    HttpError,
    InvalidUrlError,
    TransportError,
)
from pagecapture.extractors.urlnorm import normalize_url
from pagecapture.items import FetchOptions

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


class FetchResult(NamedTuple):
    url: str        # final URL after redirects
    status: int
    reason: str
    headers: Any
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def build_headers(options: FetchOptions) -> dict[str, str]:
    """Return the browser-like request header set."""
    return {
        "User-Agent": options.effective_user_agent,
        "Accept": _ACCEPT,
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


# ---------------------------------------------------------------------------
# Redirect policy
# ---------------------------------------------------------------------------

class _RedirectPolicy(urllib.request.HTTPRedirectHandler):
    """Follow at most *max_redirects* hops, or none at all.

    Every hop target goes through :func:`normalize_url`, so a redirect
    cannot lead to a blocked host.  When not following, returning ``None``
    makes urllib surface the 3xx as an ``HTTPError`` that
    :func:`fetch_html` turns back into a plain result.
    """

    def __init__(self, follow: bool, max_redirects: int) -> None:
        super().__init__()
        self.follow = follow
        self.max_redirects = max_redirects
        # Our own cap is authoritative; keep urllib's from firing first
        self.max_redirections = max_redirects + 1

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        if not self.follow:
            return None
        # Hops followed so far; urllib's redirect_dict counts distinct URLs,
        # which stays small in an A -> B -> A loop
        hops = getattr(req, "redirect_hops", 0)
        if hops >= self.max_redirects:
            raise urllib.error.HTTPError(
                req.full_url, code,
                f"Too many redirects (max {self.max_redirects})", headers, fp,
            )
        newurl = normalize_url(newurl)
        logger.debug("redirect %d -> %s (hop %d/%d)", code, newurl, hops + 1, self.max_redirects)
        new = super().redirect_request(req, fp, code, msg, headers, newurl)
        if new is not None:
            new.redirect_hops = hops + 1
        return new


def _build_opener(options: FetchOptions) -> urllib.request.OpenerDirector:
    return urllib.request.build_opener(
        _RedirectPolicy(options.follow_redirects, options.max_redirects),
    )


# ---------------------------------------------------------------------------
# Body handling
# ---------------------------------------------------------------------------

def _response_socket(resp: Any) -> socket.socket | None:
    """Return the socket under a urllib response, or None when there is none."""
    fp = getattr(resp, "fp", None)
    # HTTPError wraps the HTTPResponse
    if isinstance(fp, http.client.HTTPResponse):
        fp = fp.fp
    sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


def _read_body(resp: Any, url: str, deadline: float, options: FetchOptions) -> bytes:
    """Read *resp* in chunks, enforcing the overall deadline and size cap.

    Each ``read1`` performs at most one socket receive, and the socket timeout
    is narrowed to the time left before every receive, so a server that
    trickles bytes cannot hold the call past the deadline.
    """
    sock = _response_socket(resp)
    chunks: list[bytes] = []
    total = 0
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FetchTimeoutError(url, options.timeout_ms)
        if sock is not None and sock.fileno() != -1:
            sock.settimeout(remaining)
        try:
            chunk = resp.read1(_CHUNK_SIZE)
        except TimeoutError as exc:
            raise FetchTimeoutError(url, options.timeout_ms) from exc
        if not chunk:
            break
        total += len(chunk)
        if total > options.max_bytes:
            raise TransportError(
                f"Response from {url} exceeds {options.max_bytes} bytes", url=url,
            )
        chunks.append(chunk)
    return b"".join(chunks)


def decode_body(raw: bytes, headers: Any, url: str) -> str:
    """Decompress (gzip/deflate) and decode *raw* using the response charset."""
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "") or "").lower().strip()
        except Exception:
            encoding = ""

    try:
        if encoding in ("gzip", "x-gzip"):
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            try:
                raw = zlib.decompress(raw)
            except zlib.error:
                # Some servers send raw deflate without the zlib header
                raw = zlib.decompress(raw, -zlib.MAX_WBITS)
    except (OSError, EOFError, zlib.error) as exc:
        raise TransportError(
            f"{encoding} decompression failed for {url}: {exc}", url=url,
        ) from exc

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except Exception:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, TypeError, ValueError):
        return raw.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_html(url: str, options: FetchOptions | None = None) -> FetchResult:
    """Fetch *url* once and return the decoded response.

    Args:
        url:     Fully-qualified HTTP/HTTPS URL (normally already passed
                 through :func:`~pagecapture.extractors.urlnorm.normalize_url`).
        options: Timeout, User-Agent, redirect policy and size cap.

    Returns:
        :class:`FetchResult`.  Status is 2xx, or 3xx when
        ``follow_redirects`` is false and the server redirected.

    Raises:
        InvalidUrlError:   Scheme other than http/https.
        FetchTimeoutError: The request exceeded ``options.timeout_ms``.
        HttpError:         Non-2xx status (or too many redirects).
        TransportError:    DNS, connection, or body-decoding failure.
        BlockedHostError:  A redirect pointed at a blocked host.
    """
    options = options or FetchOptions()
    scheme = urlsplit(url).scheme.lower()
    if scheme not in ("http", "https"):
        raise InvalidUrlError(f"Unsupported URL scheme: {scheme!r}", url=url)

    try:
        req = urllib.request.Request(url, headers=build_headers(options))
    except ValueError as exc:
        raise InvalidUrlError(f"Invalid URL: {exc}", url=url) from exc

    timeout_s = options.timeout_ms / 1000
    deadline = time.monotonic() + timeout_s
    opener = _build_opener(options)
    logger.debug("GET %s (timeout=%dms)", url, options.timeout_ms)

    try:
        with opener.open(req, timeout=timeout_s) as resp:
            raw = _read_body(resp, url, deadline, options)
            return FetchResult(
                url=resp.geturl() or url,
                status=resp.status,
                reason=resp.reason or "",
                headers=resp.headers,
                text=decode_body(raw, resp.headers, url),
            )

    except urllib.error.HTTPError as exc:
        try:
            if 300 <= exc.code < 400 and not options.follow_redirects:
                raw = _read_body(exc, url, deadline, options) if exc.fp else b""
                return FetchResult(
                    url=url,
                    status=exc.code,
                    reason=str(exc.reason or ""),
                    headers=exc.headers,
                    text=decode_body(raw, exc.headers, url),
                )
            raise HttpError(url, exc.code, str(exc.reason or "")) from exc
        finally:
            if exc.fp is not None:
                exc.close()

    except (InvalidUrlError, BlockedHostError) as exc:
        # Raised by the redirect policy for a hop target; report the requested URL
        raise type(exc)(f"Redirect to {exc.url} refused: {exc}", url=url) from exc

    except FetchError:
        raise

    except urllib.error.URLError as exc:
        if isinstance(exc.reason, TimeoutError):
            raise FetchTimeoutError(url, options.timeout_ms) from exc
        raise TransportError(f"URL error fetching {url}: {exc.reason}", url=url) from exc

    except TimeoutError as exc:
        raise FetchTimeoutError(url, options.timeout_ms) from exc

    # ValueError covers UnicodeError from IDNA-encoding an over-long host label
    except (OSError, http.client.HTTPException, ValueError) as exc:
        raise TransportError(f"Network error fetching {url}: {exc}", url=url) from exc
