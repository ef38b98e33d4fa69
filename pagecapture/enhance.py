"""Client for the remote AI enhancement service.

The service is an opaque text-to-text transformation: it receives page
markup and returns enhanced markup.  Configuration is passed explicitly
through :class:`EnhancerConfig`; there is no module-level client.

Usage::

    from pagecapture import fetch_website_content
    from pagecapture.enhance import EnhancementClient, EnhancerConfig

    page = fetch_website_content("https://example.com")
    client = EnhancementClient(EnhancerConfig.from_env())
    enhanced_html = client.enhance(page.enhancement_input())
"""

from __future__ import annotations

import json
import logging
import os
import re
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from pagecapture import settings
from pagecapture.errors import EnhancementError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """\
You are an expert web developer and designer. Analyze the provided website \
content and create an enhanced, modern version.

Guidelines:
1. Modernize the design with contemporary UI/UX principles
2. Improve responsiveness for all device sizes
3. Enhance accessibility (ARIA labels, semantic HTML, keyboard navigation)
4. Keep the original content and its meaning intact
5. Use modern CSS features (Grid, Flexbox, CSS variables)

Return ONLY a complete, self-contained HTML file with embedded CSS."""

# ```html ... ``` fence some models wrap their answer in
_HTML_FENCE_RE = re.compile(r"```(?:html)?\s*\n(.*?)\n?```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class EnhancerConfig:
    """Connection and sampling settings for the enhancement service."""

    endpoint: str = settings.AI_ENDPOINT
    api_key: str = field(default="", repr=False)
    model: str = settings.AI_MODEL
    customer_id: str | None = None
    max_tokens: int = settings.AI_MAX_TOKENS
    temperature: float = settings.AI_TEMPERATURE
    timeout_ms: int = settings.AI_TIMEOUT_MS

    @classmethod
    def from_env(cls) -> EnhancerConfig:
        """Build a config from ``PAGECAPTURE_AI_*`` environment variables."""
        return cls(
            endpoint=os.getenv("PAGECAPTURE_AI_ENDPOINT", settings.AI_ENDPOINT),
            api_key=os.getenv("PAGECAPTURE_AI_API_KEY", ""),
            model=os.getenv("PAGECAPTURE_AI_MODEL", settings.AI_MODEL),
            customer_id=os.getenv("PAGECAPTURE_AI_CUSTOMER_ID") or None,
        )


def strip_code_fence(text: str) -> str:
    """Return the body of a fenced code block in *text*, or *text* itself."""
    match = _HTML_FENCE_RE.search(text)
    return (match.group(1) if match else text).strip()


class EnhancementClient:
    """Sends page markup to the enhancement service."""

    def __init__(self, config: EnhancerConfig) -> None:
        self.config = config

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        if self.config.customer_id:
            headers["CustomerId"] = self.config.customer_id
        return headers

    def build_request_body(self, content: str, system_prompt: str | None = None) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Please enhance this website content:\n\n{content}",
                },
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    def enhance(self, content: str, system_prompt: str | None = None) -> str:
        """Return the enhanced markup for *content*.

        Raises:
            EnhancementError: On HTTP, network, or response-format failures.
        """
        endpoint = self.config.endpoint
        body = json.dumps(self.build_request_body(content, system_prompt)).encode("utf-8")
        req = urllib.request.Request(endpoint, data=body, headers=self._headers(), method="POST")
        logger.info("enhance: sending %d chars to %s", len(content), endpoint)

        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout_ms / 1000) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            raise EnhancementError(
                f"AI API request failed: {exc.code} {exc.reason}",
                url=endpoint,
                status=exc.code,
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise EnhancementError(f"AI API unreachable: {exc}", url=endpoint) from exc
        except ValueError as exc:
            raise EnhancementError(f"AI API returned invalid JSON: {exc}", url=endpoint) from exc

        try:
            text = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise EnhancementError("No response from AI model", url=endpoint) from exc
        if not isinstance(text, str) or not text.strip():
            raise EnhancementError("AI model returned empty content", url=endpoint)

        return strip_code_fence(text)
