"""
Durable Key/Value Storage for Usage Counters.

The daily quota store only needs three string operations, the same
surface a browser's localStorage offers:

    read(key) -> str | None
    write(key, value)
    delete(key)

Backends:
    - MemoryStorage: process-local dict (tests, throwaway sessions)
    - JsonFileStorage: one JSON object on disk, rewritten atomically

File Layout (JsonFileStorage):
    {
        "gemini_tts_usage_2025-01-14": "1499",
        "gemini_tts_usage_2025-01-15": "12"
    }

Atomic Writes:
    Every write goes to a sibling temp file which then replaces the real
    file, so a crash mid-write never leaves a truncated JSON document.
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from tts_gate.core.config import StorageConfig
from tts_gate.core.logging import debug, get_logger, warn

_LOG = get_logger("tts-gate.storage")


class KeyValueStorage:
    """
    Abstract string key/value store.

    Subclasses must implement read(), write() and delete(). Implementations
    must be safe to call from several threads.
    """
    name: str = "base"

    def read(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        raise NotImplementedError

    def write(self, key: str, value: str) -> None:
        """Create or overwrite a key."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """Dict-backed storage; lost when the process exits."""
    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JsonFileStorage(KeyValueStorage):
    """
    Storage persisted as a single JSON object.

    The file is re-read on every operation so two processes sharing the
    file see each other's last completed write (no cross-process locking).
    A missing file reads as empty; a corrupt file is logged and treated
    as empty, and the next write replaces it.
    """
    name = "json"

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            warn(_LOG, "usage_file_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            warn(_LOG, "usage_file_not_object", path=str(self._path))
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=self._path.name + ".", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        debug(_LOG, "usage_file_written", path=str(self._path), keys=len(data))

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


def create_storage(config: StorageConfig) -> KeyValueStorage:
    """
    Build the storage backend named by the storage config.

    Raises:
        ValueError: If the backend is unknown.
    """
    if config.backend == "memory":
        return MemoryStorage()
    if config.backend == "json":
        return JsonFileStorage(config.path)
    raise ValueError(f"Unknown storage backend: {config.backend}")
