"""
Transcript Stores

Key/value holders for the current transcript text. The monitor only needs
``get``/``set``; a store that also has ``subscribe`` gets push observation,
anything else is polled.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Protocol, runtime_checkable

from .errors import StoreError

logger = logging.getLogger("transcript_agent.common.storage")

Unsubscribe = Callable[[], None]


@runtime_checkable
class TranscriptStore(Protocol):
    async def get(self, key: str) -> str:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


@runtime_checkable
class SubscribableStore(TranscriptStore, Protocol):
    def subscribe(self, key: str, callback: Callable[[str], None]) -> Unsubscribe:
        ...


class MemoryStore:
    """
    In-memory store with change subscriptions.

    Data is not persisted. Every ``set`` notifies the subscribers of that key
    synchronously, in registration order.

    Usage:
        store = MemoryStore()
        unsubscribe = store.subscribe("transcript", print)
        await store.set("transcript", "Hello world")
        unsubscribe()
    """

    def __init__(self):
        self._store: Dict[str, str] = {}
        self._listeners: Dict[str, List[Callable[[str], None]]] = {}

    async def get(self, key: str) -> str:
        return self._store.get(key, "")

    async def set(self, key: str, value: str) -> None:
        self._store[key] = value
        for callback in list(self._listeners.get(key, [])):
            callback(value)

    def subscribe(self, key: str, callback: Callable[[str], None]) -> Unsubscribe:
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._listeners[key]

        return unsubscribe


class JsonFileStore:
    """
    Store persisted to a JSON file.

    Has no ``subscribe``: another process may write the file, so the monitor
    polls it. The file is re-read on every ``get``.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"Failed to read transcript store {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Transcript store {self._path} does not hold a JSON object")
        return data

    def _save(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self._path)
        except OSError as e:
            raise StoreError(f"Failed to write transcript store {self._path}: {e}") from e

    async def get(self, key: str) -> str:
        data = await asyncio.to_thread(self._load)
        value = data.get(key, "")
        return value if isinstance(value, str) else str(value)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._save, key, value)
        logger.debug("Stored %d chars under %r in %s", len(value), key, self._path)
