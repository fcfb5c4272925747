"""Cloudflare R2 object store over the S3-compatible API."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .object_store import ObjectStore, StorageError

logger = structlog.get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=4)


class R2ObjectStore(ObjectStore):
    """Stores objects in an R2 bucket using a synchronous boto3 S3 client."""

    def __init__(
        self,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
        public_url: str = "",
    ):
        if not account_id or not access_key_id or not secret_access_key or not bucket:
            raise ValueError("account_id, access_key_id, secret_access_key and bucket are required for R2")
        endpoint = f"https://{account_id}.r2.cloudflarestorage.com"
        self._client = boto3.client(
            "s3",
            region_name="auto",
            endpoint_url=endpoint,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )
        self._bucket = bucket
        super().__init__(public_url or f"{endpoint}/{bucket}")

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        loop = asyncio.get_running_loop()
        upload = partial(
            self._client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        try:
            await loop.run_in_executor(_executor, upload)
        except (BotoCoreError, ClientError) as e:
            logger.error("r2_put_failed", key=key, bucket=self._bucket, error=str(e))
            raise StorageError(f"R2 upload failed for {key}: {e}") from e

        logger.info("object_stored", backend="r2", key=key, bucket=self._bucket, size_bytes=len(data))
        return self.public_url(key)
