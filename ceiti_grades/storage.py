"""Persisted string key/value stores used for the grades cache."""
from abc import ABC, abstractmethod
import asyncio
import json
import logging
from pathlib import Path

import aiofiles

_LOGGER = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Async string to string storage."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the value stored under key, or None."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store value under key."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove key if present."""


class MemoryStore(KeyValueStore):
    """In-process store, mostly for tests and one-shot runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON document on disk.

    The file is re-read whenever its size or modification time changes, so
    writes from another process (such as a switch of the active identity)
    are seen on the next access.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, str] | None = None
        self._signature: tuple[int, int] | None = None
        self._lock = asyncio.Lock()

    def _file_signature(self) -> tuple[int, int] | None:
        """Return (mtime_ns, size) of the file, or None when it is missing."""
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    async def _load(self) -> dict[str, str]:
        """Return the document, reading it again if the file changed on disk."""
        signature = self._file_signature()
        if self._data is not None and signature == self._signature:
            return self._data

        self._signature = signature
        if signature is None:
            self._data = {}
            return self._data

        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            content = await f.read()

        try:
            data = json.loads(content) if content.strip() else {}
        except json.JSONDecodeError as err:
            _LOGGER.error("Cache file %s is corrupt, starting empty: %s", self.path, err)
            data = {}

        if not isinstance(data, dict):
            _LOGGER.error("Cache file %s does not hold an object, starting empty", self.path)
            data = {}

        self._data = {str(k): str(v) for k, v in data.items()}
        return self._data

    async def _save(self) -> None:
        """Write the whole document back to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(self._data, ensure_ascii=False))
        self._signature = self._file_signature()

    async def get_item(self, key: str) -> str | None:
        """Return the value stored under key, or None."""
        async with self._lock:
            data = await self._load()
            return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store value under key and write the file."""
        async with self._lock:
            data = await self._load()
            data[key] = value
            await self._save()

    async def remove_item(self, key: str) -> None:
        """Remove key and write the file if it was present."""
        async with self._lock:
            data = await self._load()
            if data.pop(key, None) is not None:
                await self._save()
