"""Key-value store collaborator injected into features.

Features must not keep cross-event state in process memory; they get a
KeyValueStore instead. MemoryKeyValueStore is for tests and throwaway
runs, YAMLKeyValueStore survives restarts.
"""
import logging
from typing import Any, Dict, Optional

import trio

from storage.file_store import YAMLFileStore

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Interface for external key-value storage.
    """

    async def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        raise NotImplementedError

    async def incr(self, key: str, amount: int = 1) -> int:
        """Add ``amount`` to an integer value (missing keys start at 0)."""
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. Contents are lost on restart."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    async def get(self, key: str, default: Any = None) -> Any:
        await trio.lowlevel.checkpoint()
        return self._data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        await trio.lowlevel.checkpoint()
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        await trio.lowlevel.checkpoint()
        if key not in self._data:
            return False
        del self._data[key]
        return True

    async def incr(self, key: str, amount: int = 1) -> int:
        await trio.lowlevel.checkpoint()
        value = int(self._data.get(key, 0)) + amount
        self._data[key] = value
        return value


class YAMLKeyValueStore(KeyValueStore):
    """Store persisted to a YAML file.

    File I/O runs in a worker thread; a trio.Lock serializes
    read-modify-write cycles between concurrent handlers.
    """

    def __init__(self, path: str) -> None:
        self._store = YAMLFileStore(path)
        self._lock = trio.Lock()

    async def _read(self) -> Dict[str, Any]:
        data = await trio.to_thread.run_sync(self._store.read)
        if not isinstance(data, dict):
            logger.warning("Store file %s malformed, treating as empty", self._store.path)
            return {}
        return data

    async def _write(self, data: Dict[str, Any]) -> None:
        await trio.to_thread.run_sync(self._store.write, data)

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            data = await self._read()
        return data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await self._read()
            data[key] = value
            await self._write(data)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            data = await self._read()
            if key not in data:
                return False
            del data[key]
            await self._write(data)
            return True

    async def incr(self, key: str, amount: int = 1) -> int:
        async with self._lock:
            data = await self._read()
            value = int(data.get(key, 0)) + amount
            data[key] = value
            await self._write(data)
            return value
