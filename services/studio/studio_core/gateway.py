from __future__ import annotations

import time
from typing import Any, Dict, Optional

from libs.core import llm_provider, logging as core_logging
from libs.core.llm_provider import (
    Attachment,
    GenerationRequest,
    LLMProvider,
    LLMProviderError,
    ResponseMode,
)

from .config import StudioSettings
from .errors import ConfigurationError, EmptyResultError, TransportError

LOGGER = core_logging.get_logger("studio")


class ModelGateway:
    """Single entry point for model calls.

    Credentials are checked on every call, before the provider is touched, so a
    missing key fails each action the same way without any network traffic.
    """

    def __init__(self, settings: StudioSettings, provider: Optional[LLMProvider] = None) -> None:
        self.settings = settings
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            try:
                self._provider = llm_provider.resolve_provider(
                    self.settings.provider,
                    api_key=self.settings.api_key,
                    model=self.settings.model,
                    base_url=self.settings.base_url,
                    timeout_s=self.settings.model_timeout_s,
                )
            except ValueError as exc:
                LOGGER.error("llm_provider_unsupported", provider=self.settings.provider)
                raise ConfigurationError(f"unsupported_llm_provider:{self.settings.provider}") from exc
        return self._provider

    def generate_text(
        self,
        prompt: str,
        *,
        fallback: str = "",
        temperature: Optional[float] = None,
    ) -> str:
        text = self._call(
            GenerationRequest(prompt=prompt, mode=ResponseMode.text, temperature=temperature)
        )
        return text or fallback

    def generate_json(
        self,
        prompt: str,
        schema: Dict[str, Any],
        *,
        temperature: Optional[float] = None,
        attachment: Optional[Attachment] = None,
    ) -> str:
        text = self._call(
            GenerationRequest(
                prompt=prompt,
                mode=ResponseMode.json,
                schema=schema,
                temperature=temperature,
                attachment=attachment,
            )
        )
        if not text:
            raise EmptyResultError()
        return text

    def generate_search(self, prompt: str, *, temperature: Optional[float] = None) -> str:
        text = self._call(
            GenerationRequest(prompt=prompt, mode=ResponseMode.search, temperature=temperature)
        )
        if not text:
            raise EmptyResultError()
        return text

    def _call(self, request: GenerationRequest) -> str:
        if not self.settings.has_credentials:
            LOGGER.error("llm_credentials_missing", provider=self.settings.provider)
            raise ConfigurationError()
        provider = self.provider
        started_at = time.monotonic()
        try:
            response = provider.generate(request)
        except LLMProviderError as exc:
            LOGGER.warning(
                "llm_generate_failed",
                mode=request.mode.value,
                provider_model=provider.model,
                error=str(exc),
            )
            raise TransportError(str(exc)) from exc
        text = (response.content or "").strip()
        LOGGER.info(
            "llm_generate_finished",
            mode=request.mode.value,
            provider_type=provider.__class__.__name__,
            provider_model=provider.model,
            prompt_chars=int(len(request.prompt)),
            has_attachment=request.attachment is not None,
            response_chars=int(len(text)),
            duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
        )
        return text
