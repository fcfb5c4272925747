"""Build the configured object store and metadata recorder."""
from __future__ import annotations

from ..config import Settings
from .metadata import D1MetadataRecorder, MetadataRecorder, SqlMetadataRecorder
from .object_store import ObjectStore


def build_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "blob":
        from .blob import BlobObjectStore

        connection_string = settings.blob_connection_string.get_secret_value()
        if not connection_string:
            raise ValueError("PICTURE_BLOB_CONNECTION_STRING is required for the blob backend")
        return BlobObjectStore(connection_string, settings.blob_container, settings.public_url)

    if settings.storage_backend == "r2":
        from .r2 import R2ObjectStore

        return R2ObjectStore(
            settings.r2_account_id,
            settings.r2_access_key_id,
            settings.r2_secret_access_key.get_secret_value(),
            settings.r2_bucket_name,
            settings.public_url,
        )

    from .local import LocalObjectStore

    public_url = settings.public_url or f"http://localhost:{settings.api_port}/files"
    return LocalObjectStore(settings.local_storage_path, public_url)


def build_recorder(settings: Settings) -> MetadataRecorder:
    if settings.recorder_backend == "d1":
        return D1MetadataRecorder(
            settings.d1_account_id,
            settings.d1_database_id,
            settings.d1_api_token.get_secret_value(),
            timeout=settings.d1_timeout,
        )
    return SqlMetadataRecorder()
