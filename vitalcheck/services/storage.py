"""
Storage collaborator: an async key-value store of opaque bytes.

The core serializes and encrypts its own records before calling `set`, so
backends never see plaintext health data.
"""

import asyncio
import base64
from pathlib import Path
from typing import Protocol

import structlog

from vitalcheck.config import StorageConfig
from vitalcheck.errors import StorageError

logger = structlog.get_logger(__name__)


class StorageBackend(Protocol):
    """Async key-value storage. Failures raise StorageError."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage, used in tests and for ephemeral sessions."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """
    One file per key under a directory.

    Filenames are the urlsafe base64 of the key, so user-supplied identifiers
    can never escape the directory. Blocking file I/O runs in a worker thread.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.logger = logger.bind(component="file_storage", directory=str(self.directory))

    def _path_for(self, key: str) -> Path:
        name = base64.urlsafe_b64encode(key.encode()).decode().rstrip("=")
        return self.directory / f"{name}.bin"

    def _read(self, key: str) -> bytes | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def _write(self, key: str, value: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_bytes(value)
        tmp.replace(path)

    def _remove(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    async def get(self, key: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._read, key)
        except OSError as e:
            self.logger.error("storage_read_failed", key=key, error=str(e))
            raise StorageError(f"Failed to read {key!r}") from e

    async def set(self, key: str, value: bytes) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except OSError as e:
            self.logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write {key!r}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._remove, key)
        except OSError as e:
            self.logger.error("storage_delete_failed", key=key, error=str(e))
            raise StorageError(f"Failed to delete {key!r}") from e


def create_storage(config: StorageConfig) -> StorageBackend:
    """Build the configured storage backend."""
    if config.backend == "memory":
        return InMemoryStorage()
    return FileStorage(config.data_dir)
