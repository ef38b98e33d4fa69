"""Tests for the AI enhancement client (HTTP mocked)."""

from __future__ import annotations

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from pagecapture.enhance import (
    DEFAULT_SYSTEM_PROMPT,
    EnhancementClient,
    EnhancerConfig,
    strip_code_fence,
)
from pagecapture.errors import EnhancementError, FetchError

ENDPOINT = "https://ai.example.com/chat/completions"


def _config(**kwargs) -> EnhancerConfig:
    return EnhancerConfig(endpoint=ENDPOINT, **kwargs)


def _api_response(payload: object) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


class TestEnhancerConfig:
    def test_api_key_hidden_from_repr(self):
        assert "secret" not in repr(_config(api_key="secret"))

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PAGECAPTURE_AI_ENDPOINT", ENDPOINT)
        monkeypatch.setenv("PAGECAPTURE_AI_API_KEY", "k-123")
        monkeypatch.setenv("PAGECAPTURE_AI_MODEL", "some/model")
        monkeypatch.setenv("PAGECAPTURE_AI_CUSTOMER_ID", "cust-1")
        config = EnhancerConfig.from_env()
        assert config.endpoint == ENDPOINT
        assert config.api_key == "k-123"
        assert config.model == "some/model"
        assert config.customer_id == "cust-1"

    def test_from_env_blank_customer_id(self, monkeypatch):
        monkeypatch.setenv("PAGECAPTURE_AI_CUSTOMER_ID", "")
        assert EnhancerConfig.from_env().customer_id is None


class TestRequestBody:
    def test_messages(self):
        body = EnhancementClient(_config(model="m")).build_request_body("<p>x</p>")
        assert body["model"] == "m"
        assert body["messages"][0] == {"role": "system", "content": DEFAULT_SYSTEM_PROMPT}
        assert body["messages"][1]["role"] == "user"
        assert body["messages"][1]["content"].endswith("<p>x</p>")

    def test_custom_system_prompt(self):
        body = EnhancementClient(_config()).build_request_body("x", system_prompt="Be terse.")
        assert body["messages"][0]["content"] == "Be terse."

    def test_sampling_settings(self):
        body = EnhancementClient(_config(max_tokens=100, temperature=0.2)).build_request_body("x")
        assert body["max_tokens"] == 100
        assert body["temperature"] == 0.2


class TestEnhance:
    def test_returns_content(self):
        with patch("urllib.request.urlopen",
                   return_value=_api_response(_completion("<html>new</html>"))):
            assert EnhancementClient(_config()).enhance("<p>x</p>") == "<html>new</html>"

    def test_strips_code_fence(self):
        text = "Here you go:\n```html\n<html>fenced</html>\n```"
        with patch("urllib.request.urlopen", return_value=_api_response(_completion(text))):
            assert EnhancementClient(_config()).enhance("x") == "<html>fenced</html>"

    def test_request_shape(self):
        with patch("urllib.request.urlopen",
                   return_value=_api_response(_completion("ok"))) as urlopen:
            EnhancementClient(_config(api_key="k", customer_id="c", timeout_ms=2000)).enhance("x")
        req = urlopen.call_args.args[0]
        assert req.full_url == ENDPOINT
        assert req.get_method() == "POST"
        assert req.get_header("Authorization") == "Bearer k"
        assert req.get_header("Customerid") == "c"
        assert urlopen.call_args.kwargs["timeout"] == 2.0
        assert json.loads(req.data)["messages"][1]["content"].endswith("x")

    def test_no_auth_header_without_key(self):
        with patch("urllib.request.urlopen",
                   return_value=_api_response(_completion("ok"))) as urlopen:
            EnhancementClient(_config()).enhance("x")
        assert urlopen.call_args.args[0].get_header("Authorization") is None

    def test_http_error(self):
        error = urllib.error.HTTPError(ENDPOINT, 401, "Unauthorized", None, io.BytesIO(b""))
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(EnhancementError, match="401") as excinfo:
                EnhancementClient(_config()).enhance("x")
        assert excinfo.value.status == 401

    def test_unreachable(self):
        error = urllib.error.URLError(ConnectionRefusedError("refused"))
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(EnhancementError, match="unreachable"):
                EnhancementClient(_config()).enhance("x")

    def test_invalid_json(self):
        resp = _api_response({})
        resp.read.return_value = b"<html>not json</html>"
        with patch("urllib.request.urlopen", return_value=resp):
            with pytest.raises(EnhancementError, match="invalid JSON"):
                EnhancementClient(_config()).enhance("x")

    def test_missing_choices(self):
        with patch("urllib.request.urlopen", return_value=_api_response({"choices": []})):
            with pytest.raises(EnhancementError, match="No response from AI model"):
                EnhancementClient(_config()).enhance("x")

    def test_empty_content(self):
        with patch("urllib.request.urlopen", return_value=_api_response(_completion("  "))):
            with pytest.raises(EnhancementError):
                EnhancementClient(_config()).enhance("x")

    def test_error_is_fetch_error(self):
        assert issubclass(EnhancementError, FetchError)


class TestStripCodeFence:
    def test_plain_text_unchanged(self):
        assert strip_code_fence("  <html></html>  ") == "<html></html>"

    def test_unlabelled_fence(self):
        assert strip_code_fence("```\n<p>x</p>\n```") == "<p>x</p>"

    def test_uppercase_label(self):
        assert strip_code_fence("```HTML\n<p>x</p>\n```") == "<p>x</p>"
