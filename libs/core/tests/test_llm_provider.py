from __future__ import annotations

import io
import json
from urllib.error import HTTPError, URLError

import pytest

from libs.core import llm_provider as llm_provider_module
from libs.core.llm_provider import (
    Attachment,
    GeminiProvider,
    GenerationRequest,
    LLMProviderError,
    MockLLMProvider,
    ResponseMode,
    build_generate_payload,
    resolve_provider,
)


class _FakeHTTPResponse:
    def __init__(self, payload: dict) -> None:
        self._raw = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_FakeHTTPResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


def _success_payload(*texts: str) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text} for text in texts]}}
        ]
    }


def test_gemini_provider_posts_generate_content(monkeypatch) -> None:
    captured: list = []

    def _fake_urlopen(request, **kwargs):  # type: ignore[no-untyped-def]
        captured.append((request, kwargs))
        return _FakeHTTPResponse(_success_payload('{"ok":', "true}"))

    monkeypatch.setattr(llm_provider_module, "urlopen", _fake_urlopen)

    provider = GeminiProvider(api_key="test-key", model="gemini-test", base_url="https://example.test/")
    response = provider.generate(
        GenerationRequest(prompt="hello", mode=ResponseMode.json, schema={"type": "OBJECT"})
    )

    assert response.content == '{"ok":true}'
    request, kwargs = captured[0]
    assert request.full_url == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert request.get_header("X-goog-api-key") == "test-key"
    assert kwargs == {}
    body = json.loads(request.data.decode("utf-8"))
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] == {"type": "OBJECT"}


def test_gemini_provider_passes_timeout_when_configured(monkeypatch) -> None:
    seen: dict = {}

    def _fake_urlopen(request, **kwargs):  # type: ignore[no-untyped-def]
        seen.update(kwargs)
        return _FakeHTTPResponse(_success_payload("hi"))

    monkeypatch.setattr(llm_provider_module, "urlopen", _fake_urlopen)

    GeminiProvider(api_key="k", timeout_s=12.5).generate(GenerationRequest(prompt="x"))
    assert seen == {"timeout": 12.5}


def test_gemini_provider_wraps_http_error(monkeypatch) -> None:
    def _fake_urlopen(request, **kwargs):  # type: ignore[no-untyped-def]
        raise HTTPError(
            url=request.full_url,
            code=403,
            msg="Forbidden",
            hdrs=None,
            fp=io.BytesIO(b'{"error":{"message":"API key not valid"}}'),
        )

    monkeypatch.setattr(llm_provider_module, "urlopen", _fake_urlopen)

    with pytest.raises(LLMProviderError) as excinfo:
        GeminiProvider(api_key="bad").generate(GenerationRequest(prompt="x"))
    assert "403" in str(excinfo.value)
    assert "API key not valid" in str(excinfo.value)


def test_gemini_provider_wraps_connection_error(monkeypatch) -> None:
    calls = {"count": 0}

    def _fake_urlopen(request, **kwargs):  # type: ignore[no-untyped-def]
        calls["count"] += 1
        raise URLError("network down")

    monkeypatch.setattr(llm_provider_module, "urlopen", _fake_urlopen)

    with pytest.raises(LLMProviderError):
        GeminiProvider(api_key="k").generate(GenerationRequest(prompt="x"))
    assert calls["count"] == 1


def test_gemini_provider_returns_empty_text_without_candidates(monkeypatch) -> None:
    monkeypatch.setattr(
        llm_provider_module, "urlopen", lambda request, **kwargs: _FakeHTTPResponse({})
    )
    response = GeminiProvider(api_key="k").generate(GenerationRequest(prompt="x"))
    assert response.content == ""


def test_payload_text_mode_sets_plain_mime_type() -> None:
    payload = build_generate_payload(GenerationRequest(prompt="hi", temperature=0.3))
    assert payload["contents"][0]["parts"] == [{"text": "hi"}]
    assert payload["generationConfig"] == {"temperature": 0.3, "responseMimeType": "text/plain"}
    assert "tools" not in payload


def test_payload_search_mode_uses_search_tool_without_schema() -> None:
    payload = build_generate_payload(
        GenerationRequest(prompt="find", mode=ResponseMode.search, schema={"type": "OBJECT"})
    )
    assert payload["tools"] == [{"google_search": {}}]
    assert "generationConfig" not in payload


def test_payload_places_attachment_before_prompt() -> None:
    payload = build_generate_payload(
        GenerationRequest(
            prompt="extract",
            mode=ResponseMode.json,
            attachment=Attachment(mime_type="application/pdf", data="JVBERi0="),
        )
    )
    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"inline_data": {"mime_type": "application/pdf", "data": "JVBERi0="}}
    assert parts[1] == {"text": "extract"}


def test_resolve_provider() -> None:
    assert isinstance(resolve_provider("mock"), MockLLMProvider)
    provider = resolve_provider("GEMINI", api_key="k")
    assert isinstance(provider, GeminiProvider)
    assert provider.model == llm_provider_module.DEFAULT_GEMINI_MODEL
    with pytest.raises(ValueError):
        resolve_provider("openai")


def test_mock_provider_modes() -> None:
    provider = MockLLMProvider()
    assert provider.generate(GenerationRequest(prompt="x")).content == "Mock response"
    assert provider.generate(GenerationRequest(prompt="x", mode=ResponseMode.json)).content == "{}"
