"""URL validation, normalization and resolution utilities."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from pagecapture.errors import BlockedHostError, InvalidUrlError

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

# "scheme://" prefix; anything without one is treated as schemeless
_SCHEME_PREFIX_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")

# Generic "scheme:" detector used for absolute-URL checks
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

# Hostnames refused outright
_BLOCKED_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1"})

# Coarse private-network guard: hostname prefixes, not CIDR ranges.
# "172." blocks all of 172.0.0.0/8, not just 172.16.0.0/12.
_BLOCKED_HOST_PREFIXES: tuple[str, ...] = ("192.168.", "10.", "172.")

# Characters allowed in slugs
_SLUG_SAFE_RE = re.compile(r"[^\w\-]")
_MULTI_DASH_RE = re.compile(r"-{2,}")
_LEADING_TRAILING_DASH_RE = re.compile(r"^-+|-+$")

# Characters left unescaped when re-quoting path and query
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = "/?%:@!$&'()*+,;=-._~"


def _is_blocked_host(hostname: str) -> bool:
    if hostname in _BLOCKED_HOSTS or hostname.startswith(_BLOCKED_HOST_PREFIXES):
        return True
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False  # a DNS name, not an IP literal
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
    )


def normalize_url(url: str) -> str:
    """Validate *url* and return its canonical string form.

    Transformations applied:
    - Strip surrounding whitespace
    - Prefix ``https://`` when no ``scheme://`` is present
    - Lowercase scheme and host
    - Use ``/`` for an empty path
    - Percent-encode characters that are unsafe in path and query

    Raises:
        InvalidUrlError: Unparseable input, missing host, bad port, or a
            scheme other than http/https.
        BlockedHostError: Local or private-network host.
    """
    raw = (url or "").strip()
    if not raw:
        raise InvalidUrlError("Invalid URL: empty input", url=url or "")

    if not _SCHEME_PREFIX_RE.match(raw):
        raw = "https://" + raw

    try:
        parsed = urlsplit(raw)
        hostname = parsed.hostname or ""
        port = parsed.port
    except ValueError as exc:
        raise InvalidUrlError(f"Invalid URL: {exc}", url=url) from exc

    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidUrlError(
            f"Invalid URL: only HTTP and HTTPS protocols are supported (got {scheme!r})",
            url=url,
        )
    if not hostname or any(ch.isspace() for ch in hostname):
        raise InvalidUrlError("Invalid URL: missing or malformed host", url=url)

    hostname = hostname.lower()
    if _is_blocked_host(hostname):
        raise BlockedHostError(
            f"Local and private network URLs are not allowed: {hostname}", url=url,
        )

    netloc = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None:
        netloc = f"{netloc}:{port}"
    userinfo, sep, _ = parsed.netloc.rpartition("@")
    if sep:
        netloc = f"{userinfo}@{netloc}"

    path = quote(parsed.path, safe=_PATH_SAFE) or "/"
    query = quote(parsed.query, safe=_QUERY_SAFE)
    return urlunsplit((scheme, netloc, path, query, parsed.fragment))


def is_absolute_url(value: str) -> bool:
    """Return True if *value* carries a URL scheme (``https:``, ``data:``, …)."""
    return bool(_SCHEME_RE.match((value or "").strip()))


def resolve_url(value: str, base_url: str) -> str:
    """Resolve *value* against *base_url*.

    This is the only resolution routine in the package, so every stage that
    turns a reference into an absolute URL agrees on the result.  A value
    that cannot be resolved is returned unchanged (stripped).
    """
    value = (value or "").strip()
    if not value or not base_url:
        return value
    try:
        resolved = urljoin(base_url, value)
        urlsplit(resolved).port  # noqa: B018 - raises on a malformed port
    except ValueError:
        return value
    return resolved


def url_to_slug(url: str, max_length: int = 100) -> str:
    """Convert a URL into a filesystem-safe slug.

    Example:
        https://example.com/blog/how-to-scrape-data → example-com-blog-how-to-scrape-data
    """
    try:
        parsed = urlsplit(url)
        path = f"{parsed.netloc}/{parsed.path.strip('/')}".strip("/")
    except ValueError:
        path = url

    slug = _SLUG_SAFE_RE.sub("-", path.replace(".", "-"))
    slug = _MULTI_DASH_RE.sub("-", slug)
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)
    slug = slug[:max_length]
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)

    return slug or "index"
