import asyncio
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from unitwatch.errors import CommandIoError, OutputParseError


class KeyValueStore(ABC):
    """Opaque string store backing the watch-list.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, if any.
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is not an error.
        """


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, for tests and one-shot commands.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class JsonFileKeyValueStore(KeyValueStore):
    """Keeps all keys in one JSON object on disk.

    Writes go to a temporary file that is renamed over the original, so a
    crash never leaves a truncated file behind. File access runs in a worker
    thread, serialized by a lock.
    """

    def __init__(self, path: Path) -> None:
        """Initialize with the path of the JSON file.
        """
        self._logger = logging.getLogger(__name__)
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    def _get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def _set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load()
            values[key] = value
            self._write_atomically(values)

    def _delete(self, key: str) -> None:
        with self._lock:
            values = self._load()
            if values.pop(key, None) is not None:
                self._write_atomically(values)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding='utf-8') or '{}')
        except json.JSONDecodeError as e:
            raise OutputParseError(str(self._path), str(e)) from e
        except OSError as e:
            raise CommandIoError(f'Failed to read {self._path}: {e}') from e

        if not isinstance(raw, dict) or not all(
            isinstance(value, str) for value in raw.values()
        ):
            raise OutputParseError(
                str(self._path),
                'Expected a JSON object of strings',
            )
        return raw

    def _write_atomically(self, values: dict[str, str]) -> None:
        temp_path = self._path.with_suffix(f'{self._path.suffix}.tmp')

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(
                json.dumps(values, indent=2, sort_keys=True),
                encoding='utf-8',
            )
            temp_path.rename(self._path)
        except OSError as e:
            self._logger.error(
                'Failed to write %s: %s',
                self._path,
                e,
                exc_info=True,
            )
            if temp_path.exists():
                temp_path.unlink()
            raise CommandIoError(f'Failed to write {self._path}: {e}') from e

        self._logger.debug('Saved %d keys to %s', len(values), self._path)
