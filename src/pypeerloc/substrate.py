"""Durable key-value substrates.

The location store only needs a string-keyed, string-valued persistent
store. Anything implementing :class:`KeyValueSubstrate` can back it; two
implementations ship with the library.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from pypeerloc.exceptions import SubstrateError

_logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueSubstrate(Protocol):
    """Async string key-value store."""

    async def get_item(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` when absent."""
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    async def remove_item(self, key: str) -> None:
        """Delete *key*; deleting an absent key is not an error."""
        ...


class MemorySubstrate:
    """Dict-backed substrate.

    One instance may be shared by several stores in a process, standing in
    for a shared backend.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of every stored key and value."""
        return dict(self._items)


class JsonFileSubstrate:
    """Substrate persisted as one JSON object in a file.

    File I/O runs on a worker thread. Writes go to a temporary file in the
    same directory which then replaces the target, so readers never see a
    partially written file. Concurrent writers in one process are serialized
    by an ``asyncio.Lock``.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise SubstrateError(f"Failed to read {self._path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SubstrateError(f"Substrate file {self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise SubstrateError(f"Substrate file {self._path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(items, handle, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SubstrateError(f"Failed to write {self._path}: {exc}") from exc

    async def get_item(self, key: str) -> str | None:
        items = await asyncio.to_thread(self._read_all)
        return items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            items = await asyncio.to_thread(self._read_all)
            items[key] = value
            await asyncio.to_thread(self._write_all, items)
        _logger.debug("Substrate key written key=%s path=%s bytes=%d", key, self._path, len(value))

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            items = await asyncio.to_thread(self._read_all)
            if items.pop(key, None) is None:
                return
            await asyncio.to_thread(self._write_all, items)
        _logger.debug("Substrate key removed key=%s path=%s", key, self._path)
