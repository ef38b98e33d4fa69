"""Unit tests for URL validation, normalization and resolution."""

from __future__ import annotations

import pytest

from pagecapture.errors import BlockedHostError, FetchError, InvalidUrlError
from pagecapture.extractors.urlnorm import (
    is_absolute_url,
    normalize_url,
    resolve_url,
    url_to_slug,
)


class TestNormalizeUrl:
    def test_prefixes_https_when_scheme_missing(self):
        assert normalize_url("example.com") == "https://example.com/"

    def test_strips_surrounding_whitespace(self):
        assert normalize_url("   example.com/page  ") == "https://example.com/page"

    def test_keeps_http_scheme(self):
        assert normalize_url("http://example.com/a") == "http://example.com/a"

    def test_lowercases_scheme_and_host(self):
        result = normalize_url("HTTPS://Example.COM/Post")
        assert result == "https://example.com/Post"

    def test_empty_path_becomes_slash(self):
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_keeps_query_and_fragment(self):
        result = normalize_url("https://example.com/search?q=a&page=2#results")
        assert result == "https://example.com/search?q=a&page=2#results"

    def test_keeps_port(self):
        assert normalize_url("https://example.com:8443/x") == "https://example.com:8443/x"

    def test_percent_encodes_spaces_in_path(self):
        result = normalize_url("https://example.com/a path/")
        assert result == "https://example.com/a%20path/"

    def test_existing_escapes_not_double_encoded(self):
        result = normalize_url("https://example.com/a%20b")
        assert result == "https://example.com/a%20b"

    def test_is_idempotent(self):
        once = normalize_url("Example.com/Some Path?x=1")
        assert normalize_url(once) == once


class TestNormalizeUrlRejects:
    def test_empty_string(self):
        with pytest.raises(InvalidUrlError):
            normalize_url("")

    def test_whitespace_only(self):
        with pytest.raises(InvalidUrlError):
            normalize_url("   ")

    def test_ftp_scheme(self):
        with pytest.raises(InvalidUrlError, match="only HTTP and HTTPS"):
            normalize_url("ftp://example.com/file.txt")

    def test_file_scheme(self):
        with pytest.raises(InvalidUrlError):
            normalize_url("file:///etc/passwd")

    def test_missing_host(self):
        with pytest.raises(InvalidUrlError):
            normalize_url("https://")

    def test_bad_port(self):
        with pytest.raises(InvalidUrlError):
            normalize_url("https://example.com:notaport/")

    def test_invalid_url_error_is_fetch_error(self):
        with pytest.raises(FetchError):
            normalize_url("ftp://example.com")

    def test_error_carries_input_url(self):
        with pytest.raises(InvalidUrlError) as excinfo:
            normalize_url("ftp://example.com")
        assert excinfo.value.url == "ftp://example.com"


class TestBlockedHosts:
    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost/",
            "localhost:3000",
            "http://127.0.0.1:8080/admin",
            "http://192.168.1.1/",
            "http://10.0.0.5/",
            "http://172.16.0.1/",
            "http://LOCALHOST/",
            "http://[::1]/",
            "http://169.254.169.254/latest/meta-data",
            "http://0.0.0.0/",
        ],
    )
    def test_blocked(self, url):
        with pytest.raises(BlockedHostError):
            normalize_url(url)

    def test_public_ip_allowed(self):
        assert normalize_url("http://93.184.216.34/") == "http://93.184.216.34/"

    def test_public_hostname_allowed(self):
        assert normalize_url("https://example.org/") == "https://example.org/"

    def test_blocked_message(self):
        with pytest.raises(BlockedHostError, match="not allowed"):
            normalize_url("http://localhost/")


class TestResolveUrl:
    BASE = "https://example.com/docs/guide/index.html"

    def test_root_relative(self):
        assert resolve_url("/about", self.BASE) == "https://example.com/about"

    def test_document_relative(self):
        assert resolve_url("intro.html", self.BASE) == "https://example.com/docs/guide/intro.html"

    def test_parent_relative(self):
        assert resolve_url("../api.html", self.BASE) == "https://example.com/docs/api.html"

    def test_protocol_relative(self):
        assert resolve_url("//cdn.example.net/app.js", self.BASE) == "https://cdn.example.net/app.js"

    def test_absolute_unchanged(self):
        url = "https://other.example.org/page"
        assert resolve_url(url, self.BASE) == url

    def test_data_url_unchanged(self):
        data = "data:image/gif;base64,R0lGODlhAQABAAAAACw="
        assert resolve_url(data, self.BASE) == data

    def test_strips_whitespace(self):
        assert resolve_url("  /about  ", self.BASE) == "https://example.com/about"

    def test_no_base_returns_value(self):
        assert resolve_url("/about", "") == "/about"

    def test_empty_value(self):
        assert resolve_url("", self.BASE) == ""


class TestIsAbsoluteUrl:
    @pytest.mark.parametrize(
        "value",
        ["https://example.com", "http://x", "data:image/png;base64,AA", "mailto:a@b.c"],
    )
    def test_absolute(self, value):
        assert is_absolute_url(value) is True

    @pytest.mark.parametrize("value", ["/about", "img/a.png", "//cdn.example.net/x", "", "#top"])
    def test_relative(self, value):
        assert is_absolute_url(value) is False


class TestUrlToSlug:
    def test_basic_slug(self):
        slug = url_to_slug("https://example.com/blog/how-to-scrape-data")
        assert slug == "example-com-blog-how-to-scrape-data"

    def test_root_url(self):
        assert url_to_slug("https://example.com/") == "example-com"

    def test_max_length_respected(self):
        slug = url_to_slug("https://example.com/" + "a" * 200, max_length=50)
        assert len(slug) <= 50

    def test_no_double_dashes(self):
        slug = url_to_slug("https://example.com/path//to///page")
        assert "--" not in slug

    def test_empty_falls_back_to_index(self):
        assert url_to_slug("") == "index"
