"""Extraction sub-package: parsing, content extraction and sanitization."""

from .content import ExtractedContent, extract_content
from .document import Document, parse_document
from .metadata import extract_metadata, extract_title
from .sanitize import absolutize_urls, sanitize_document
from .urlnorm import is_absolute_url, normalize_url, resolve_url

__all__ = [
    "Document",
    "ExtractedContent",
    "absolutize_urls",
    "extract_content",
    "extract_metadata",
    "extract_title",
    "is_absolute_url",
    "normalize_url",
    "parse_document",
    "resolve_url",
    "sanitize_document",
]
