"""Durable key-value slots.

A slot holds one JSON text value under a fixed key. The file-backed store
keeps each key in data/state/{key}.json, the in-memory store is used when
the tracker is embedded without a disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class FileKeyValueStore:
    """Key-value slots stored as files under {data_dir}/state/."""

    def __init__(self, data_dir: Path | None = None):
        if data_dir is None:
            data_dir = Path("data")
        self._state_dir = data_dir / "state"

    def path_for(self, key: str) -> Path:
        return self._state_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            logger.debug("slot_not_found", key=key, path=str(path))
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._state_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        # Slot is replaced atomically
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            logger.info("slot_deleted", key=key, path=str(path))


class MemoryKeyValueStore:
    """In-process key-value slots."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._values
