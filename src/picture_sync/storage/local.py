"""Local filesystem object store for development without Azure Blob."""

from __future__ import annotations

import asyncio
import json
from functools import partial
from pathlib import Path

import structlog

from .object_store import ObjectStore, StorageError

logger = structlog.get_logger(__name__)


class LocalObjectStore(ObjectStore):
    """Stores objects under ``<root>/pictures/<key>``.

    The content type is kept in a ``<key>.meta.json`` sidecar so the file can
    be served back with the right header.
    """

    def __init__(self, root: str | Path, public_url: str):
        super().__init__(public_url)
        self._dir = Path(root) / "pictures"

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid object key: {key!r}")
        return self._dir / key

    def content_type_of(self, key: str) -> str | None:
        meta = self.path_for(key).with_name(f"{key}.meta.json")
        if not meta.exists():
            return None
        return json.loads(meta.read_text(encoding="utf-8")).get("content_type")

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self.path_for(key)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._write, path, data, content_type))
        except OSError as e:
            logger.error("local_put_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write {path}: {e}") from e

        logger.info("object_stored", backend="local", key=key, size_bytes=len(data))
        return self.public_url(key)

    def _write(self, path: Path, data: bytes, content_type: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.tmp")
        tmp.write_bytes(data)
        tmp.replace(path)
        path.with_name(f"{path.name}.meta.json").write_text(
            json.dumps({"content_type": content_type}), encoding="utf-8"
        )
