from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class ResponseMode(str, Enum):
    text = "text"
    json = "json"
    search = "search"


@dataclass
class Attachment:
    mime_type: str
    # Base64 encoded bytes, as accepted by inline_data parts.
    data: str


@dataclass
class GenerationRequest:
    prompt: str
    mode: ResponseMode = ResponseMode.text
    schema: Optional[Dict[str, Any]] = None
    temperature: Optional[float] = None
    attachment: Optional[Attachment] = None


@dataclass
class LLMResponse:
    content: str


class LLMProviderError(Exception):
    pass


class LLMProvider:
    model: str = ""

    def generate(self, request: GenerationRequest) -> LLMResponse:  # pragma: no cover - interface
        raise NotImplementedError


class MockLLMProvider(LLMProvider):
    model = "mock"

    def generate(self, request: GenerationRequest) -> LLMResponse:
        if request.mode == ResponseMode.text:
            return LLMResponse(content="Mock response")
        return LLMResponse(content="{}")


class GeminiProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def generate(self, request: GenerationRequest) -> LLMResponse:
        payload = build_generate_payload(request)
        http_request = Request(
            f"{self.base_url}/v1beta/models/{self.model}:generateContent",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            method="POST",
        )
        kwargs: Dict[str, Any] = {}
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s
        try:
            with urlopen(http_request, **kwargs) as response:
                body = response.read().decode("utf-8")
        except HTTPError as exc:
            detail = exc.read().decode("utf-8") if exc.fp else str(exc)
            raise LLMProviderError(f"Gemini API error ({exc.code}): {detail}") from exc
        except (URLError, TimeoutError) as exc:
            raise LLMProviderError(f"Gemini API connection error: {exc}") from exc
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise LLMProviderError(f"Gemini API returned non-JSON body: {exc}") from exc
        return LLMResponse(content=_extract_output_text(data))


def build_generate_payload(request: GenerationRequest) -> Dict[str, Any]:
    parts: List[Dict[str, Any]] = []
    if request.attachment is not None:
        parts.append(
            {
                "inline_data": {
                    "mime_type": request.attachment.mime_type,
                    "data": request.attachment.data,
                }
            }
        )
    parts.append({"text": request.prompt})
    payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}

    generation_config: Dict[str, Any] = {}
    if request.temperature is not None:
        generation_config["temperature"] = request.temperature
    if request.mode == ResponseMode.json:
        generation_config["responseMimeType"] = "application/json"
        if request.schema is not None:
            generation_config["responseSchema"] = request.schema
    elif request.mode == ResponseMode.text:
        generation_config["responseMimeType"] = "text/plain"
    else:
        # Search grounding cannot be combined with a response schema.
        payload["tools"] = [{"google_search": {}}]
    if generation_config:
        payload["generationConfig"] = generation_config
    return payload


def resolve_provider(
    provider_name: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> LLMProvider:
    name = (provider_name or "gemini").lower()
    if name == "mock":
        return MockLLMProvider()
    if name != "gemini":
        raise ValueError(f"Unsupported LLM provider: {provider_name}")
    return GeminiProvider(
        api_key=api_key or "",
        model=model or DEFAULT_GEMINI_MODEL,
        base_url=base_url or DEFAULT_GEMINI_BASE_URL,
        timeout_s=timeout_s,
    )


def _extract_output_text(response: Dict[str, Any]) -> str:
    parts: list[str] = []
    candidates = response.get("candidates") or []
    if not candidates:
        return ""
    content = candidates[0].get("content") or {}
    for part in content.get("parts") or []:
        text = part.get("text")
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts).strip()
