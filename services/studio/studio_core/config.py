from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from libs.core.llm_provider import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL

DEFAULT_AUTOSAVE_DELAY_S = 2.0

_PLACEHOLDER_KEYS = {"YOUR_API_KEY_HERE", "PLACEHOLDER_API_KEY"}
_PLACEHOLDER_MARKERS = ("paste_your_google",)


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def is_placeholder_api_key(api_key: Optional[str]) -> bool:
    if api_key is None:
        return True
    candidate = api_key.strip()
    if not candidate:
        return True
    if candidate in _PLACEHOLDER_KEYS:
        return True
    return any(marker in candidate for marker in _PLACEHOLDER_MARKERS)


@dataclass
class StudioSettings:
    api_key: str = ""
    model: str = DEFAULT_GEMINI_MODEL
    base_url: str = DEFAULT_GEMINI_BASE_URL
    provider: str = "gemini"
    # None leaves model calls without a timeout.
    model_timeout_s: Optional[float] = None
    autosave_delay_s: float = DEFAULT_AUTOSAVE_DELAY_S
    store_backend: str = "local"
    database_url: str = "sqlite+pysqlite:///./resume_studio.db"
    local_store_dir: str = "./.resume_studio"
    redis_url: str = "redis://localhost:6379/0"

    @property
    def has_credentials(self) -> bool:
        if self.provider == "mock":
            return True
        return not is_placeholder_api_key(self.api_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StudioSettings":
        env = os.environ if environ is None else environ
        autosave_delay = _parse_optional_float(env.get("STUDIO_AUTOSAVE_DELAY_S"))
        if autosave_delay is None or autosave_delay <= 0:
            autosave_delay = DEFAULT_AUTOSAVE_DELAY_S
        timeout = _parse_optional_float(env.get("STUDIO_MODEL_TIMEOUT_S"))
        if timeout is not None and timeout <= 0:
            timeout = None
        return cls(
            api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY", ""),
            model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            base_url=env.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
            provider=(env.get("LLM_PROVIDER") or "gemini").strip().lower(),
            model_timeout_s=timeout,
            autosave_delay_s=autosave_delay,
            store_backend=(env.get("DOCUMENT_STORE_BACKEND") or "local").strip().lower(),
            database_url=env.get("DATABASE_URL") or cls.database_url,
            local_store_dir=env.get("LOCAL_STORE_DIR") or cls.local_store_dir,
            redis_url=env.get("REDIS_URL") or cls.redis_url,
        )
