from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import redis


class KeyValueStoreError(RuntimeError):
    pass


class KeyValueStore:
    def get(self, key: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileKeyValueStore(KeyValueStore):
    """One JSON document per key under a local directory.

    File names are the hex encoding of the key, so distinct keys never share a file.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        if not (key or "").strip():
            raise KeyValueStoreError("key is required")
        return self.root / f"{key.encode('utf-8').hex()}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise KeyValueStoreError(f"read failed for {key}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise KeyValueStoreError(f"write failed for {key}: {exc}") from exc


class RedisKeyValueStore(KeyValueStore):
    def __init__(self, client: Any = None, url: str | None = None) -> None:
        if client is None:
            client = redis.Redis.from_url(url or "redis://localhost:6379/0", decode_responses=True)
        self.client = client

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as exc:
            raise KeyValueStoreError(f"redis get failed for {key}: {exc}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as exc:
            raise KeyValueStoreError(f"redis set failed for {key}: {exc}") from exc
