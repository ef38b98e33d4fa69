"""Default settings for pagecapture.

Every value can be overridden with a ``PAGECAPTURE_*`` environment variable,
read once at import time.  Per-call overrides go through
:class:`~pagecapture.items.FetchOptions`.
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------
TIMEOUT_MS = _env_int("PAGECAPTURE_TIMEOUT_MS", 30_000)

FOLLOW_REDIRECTS = os.getenv("PAGECAPTURE_FOLLOW_REDIRECTS", "1") != "0"
MAX_REDIRECTS = _env_int("PAGECAPTURE_MAX_REDIRECTS", 5)

# Hard cap on the decoded response body (bytes)
MAX_BYTES = _env_int("PAGECAPTURE_MAX_BYTES", 10 * 1024 * 1024)

USER_AGENT = os.getenv(
    "PAGECAPTURE_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36",
)

# ---------------------------------------------------------------------------
# External stylesheets
# ---------------------------------------------------------------------------
MAX_STYLESHEETS = _env_int("PAGECAPTURE_MAX_STYLESHEETS", 5)
STYLESHEET_TIMEOUT_MS = _env_int("PAGECAPTURE_STYLESHEET_TIMEOUT_MS", 5_000)

# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------
MAX_RETRIES = _env_int("PAGECAPTURE_MAX_RETRIES", 3)

# Seconds; delay after attempt N is BACKOFF_BASE * 2 ** (N - 1)
BACKOFF_BASE = _env_float("PAGECAPTURE_BACKOFF_BASE", 1.0)

# ---------------------------------------------------------------------------
# AI enhancement collaborator
# ---------------------------------------------------------------------------
AI_ENDPOINT = os.getenv(
    "PAGECAPTURE_AI_ENDPOINT", "https://oi-server.onrender.com/chat/completions",
)
AI_MODEL = os.getenv("PAGECAPTURE_AI_MODEL", "openrouter/anthropic/claude-sonnet-4")
AI_MAX_TOKENS = _env_int("PAGECAPTURE_AI_MAX_TOKENS", 8_000)
AI_TEMPERATURE = _env_float("PAGECAPTURE_AI_TEMPERATURE", 0.7)
AI_TIMEOUT_MS = _env_int("PAGECAPTURE_AI_TIMEOUT_MS", 120_000)

# ---------------------------------------------------------------------------
# Logging (applied by the CLI only; the library never installs handlers)
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("PAGECAPTURE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
