"""Pydantic models for fetch options and the extracted page record."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pagecapture import settings

# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class FetchOptions(BaseModel):
    """Per-call knobs for :func:`~pagecapture.query.fetch_website_content`."""

    model_config = ConfigDict(frozen=True)

    timeout_ms: int = Field(default=settings.TIMEOUT_MS, gt=0)
    user_agent: str | None = None
    follow_redirects: bool = settings.FOLLOW_REDIRECTS
    max_redirects: int = Field(default=settings.MAX_REDIRECTS, ge=0)

    # External stylesheet collection (off by default)
    include_external_css: bool = False
    max_stylesheets: int = Field(default=settings.MAX_STYLESHEETS, ge=0)
    stylesheet_timeout_ms: int = Field(default=settings.STYLESHEET_TIMEOUT_MS, gt=0)

    max_bytes: int = Field(default=settings.MAX_BYTES, gt=0)

    @field_validator("user_agent", mode="before")
    @classmethod
    def blank_user_agent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def effective_user_agent(self) -> str:
        return self.user_agent or settings.USER_AGENT


# ---------------------------------------------------------------------------
# Output record
# ---------------------------------------------------------------------------

class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str | None = None
    keywords: str | None = None
    author: str | None = None
    viewport: str | None = None
    charset: str | None = None


class WebsiteContent(BaseModel):
    """Structured content captured from one page.

    A record with ``error`` set is the failure signal of
    :func:`~pagecapture.query.fetch_website_content`: every other text field
    is empty and every inventory list is empty.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    url: str

    # Content
    title: str = ""
    html: str = ""
    css: str = ""
    text: str = ""
    metadata: PageMetadata = Field(default_factory=PageMetadata)

    # Inventories (absolute URLs, document order)
    images: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    scripts: list[str] = Field(default_factory=list)
    stylesheets: list[str] = Field(default_factory=list)

    error: str | None = None

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def error_excludes_content(self) -> WebsiteContent:
        if self.error is None:
            return self
        populated = [
            name
            for name in ("title", "html", "css", "text", "images", "links", "scripts", "stylesheets")
            if getattr(self, name)
        ]
        if populated:
            raise ValueError(
                f"error record must not carry content; populated: {', '.join(populated)}",
            )
        return self

    @classmethod
    def failure(cls, url: str, error: str) -> WebsiteContent:
        """Build the error-shaped record for *url*."""
        return cls(url=url, error=error or "Unknown error occurred")

    @property
    def ok(self) -> bool:
        return self.error is None

    def enhancement_input(self) -> str:
        """Return ``html`` and ``css`` in the shape the enhancement service expects."""
        return f"{self.html}\n<style>{self.css}</style>"
