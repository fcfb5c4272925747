"""Object store abstract base class."""
from __future__ import annotations
from abc import ABC, abstractmethod


class StorageError(RuntimeError):
    """Raised when an object cannot be written to the store."""


class ObjectStore(ABC):
    """Content-addressed object storage keyed by digest."""

    def __init__(self, public_url: str):
        self._public_url = public_url.rstrip("/")

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store *data* under *key* and return its public URL.

        Writing the same key twice overwrites; since keys are content
        digests the stored bytes are identical.
        """
        ...

    def public_url(self, key: str) -> str:
        return f"{self._public_url}/{key}"
