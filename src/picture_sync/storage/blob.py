"""Azure Blob Storage object store for uploaded pictures."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import structlog
from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContentSettings

from .object_store import ObjectStore, StorageError

logger = structlog.get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=4)


class BlobObjectStore(ObjectStore):
    """Thin async-friendly wrapper around the synchronous Azure Blob SDK."""

    def __init__(
        self,
        connection_string: str,
        container: str = "pictures",
        public_url: str = "",
    ):
        self._client = BlobServiceClient.from_connection_string(connection_string)
        self._container = container
        self._container_ready = False
        if not public_url:
            public_url = f"https://{self._client.account_name}.blob.core.windows.net/{container}"
        super().__init__(public_url)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(_executor, partial(self._upload, key, data, content_type))
        except AzureError as e:
            logger.error("blob_put_failed", key=key, container=self._container, error=str(e))
            raise StorageError(f"Blob upload failed for {key}: {e}") from e

        logger.info("object_stored", backend="blob", key=key, container=self._container, size_bytes=len(data))
        return self.public_url(key)

    # ── Internal ─────────────────────────────────────────────────────────

    def _upload(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_container()
        blob = self._client.get_blob_client(container=self._container, blob=key)
        blob.upload_blob(data, overwrite=True, content_settings=ContentSettings(content_type=content_type))

    def _ensure_container(self) -> None:
        if self._container_ready:
            return
        try:
            self._client.create_container(self._container)
        except ResourceExistsError:
            pass
        self._container_ready = True
