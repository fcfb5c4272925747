"""Random-access byte sources consumed by the incremental hasher."""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from functools import partial
from pathlib import Path

from fastapi import UploadFile

from .hashing import ReadError


class ByteSource(ABC):
    """A read-only byte sequence of known length."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Total length in bytes."""
        ...

    @abstractmethod
    async def read(self, start: int, end: int) -> bytes:
        """Return the bytes in ``[start, end)``."""
        ...


class BytesSource(ByteSource):
    """Source backed by an in-memory buffer."""

    def __init__(self, data: bytes):
        self._data = memoryview(data)

    @property
    def size(self) -> int:
        return len(self._data)

    async def read(self, start: int, end: int) -> bytes:
        return self._data[start:end].tobytes()


class FileSource(ByteSource):
    """Source backed by a file on disk.

    The size is captured once at construction.  Each window is read in the
    default executor so the event loop is never blocked on disk I/O.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        try:
            self._size = os.stat(self._path).st_size
        except OSError as e:
            raise ReadError(f"Failed to stat {self._path}: {e}") from e

    @property
    def path(self) -> Path:
        return self._path

    @property
    def size(self) -> int:
        return self._size

    async def read(self, start: int, end: int) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(_read_range, self._path, start, end))


class UploadFileSource(ByteSource):
    """Source backed by a FastAPI ``UploadFile`` (spooled temporary file)."""

    def __init__(self, upload: UploadFile, size: int | None = None):
        self._upload = upload
        if size is None:
            size = upload.size
        if size is None:
            upload.file.seek(0, os.SEEK_END)
            size = upload.file.tell()
            upload.file.seek(0)
        self._size = size

    @property
    def size(self) -> int:
        return self._size

    async def read(self, start: int, end: int) -> bytes:
        await self._upload.seek(start)
        return await self._upload.read(end - start)


def _read_range(path: Path, start: int, end: int) -> bytes:
    with open(path, "rb") as f:
        f.seek(start)
        return f.read(end - start)
