"""Upload route: hash an image and store it under its digest."""
from __future__ import annotations
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
import structlog

from ...config import Settings
from ...storage.object_store import ObjectStore, StorageError
from ...utils.hashing import ReadError, compute_digest
from ...utils.image import InvalidImageError, inspect_image
from ...utils.sources import UploadFileSource
from ..dependencies import get_object_store, get_settings

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/upload")
async def upload_picture(
    file: UploadFile | None = File(None),
    md5: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    store: ObjectStore = Depends(get_object_store),
):
    """Store an uploaded image keyed by its content digest.

    The digest is always recomputed here.  When the client also sends its own
    ``md5`` the two must agree, otherwise the upload is rejected.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="Missing file")

    source = UploadFileSource(file)
    if source.size == 0:
        raise HTTPException(status_code=400, detail="Empty file")
    if source.size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {settings.max_upload_bytes} bytes)",
        )

    try:
        digest = await compute_digest(
            source, settings.hash_window_size, algorithm=settings.hash_algorithm,
        )
    except ReadError as e:
        logger.error("upload_read_failed", filename=file.filename, error=str(e))
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")

    if md5 and md5.strip().lower() != digest:
        logger.warning("upload_digest_mismatch", filename=file.filename, client_digest=md5, digest=digest)
        raise HTTPException(status_code=400, detail="Digest mismatch between client and server")

    await file.seek(0)
    file_bytes = await file.read()

    try:
        info = inspect_image(file_bytes)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=f"Only image files are accepted: {e}")

    try:
        url = await store.put(digest, file_bytes, info.content_type)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")

    logger.info("upload_stored", key=digest, filename=file.filename, size_bytes=len(file_bytes),
                content_type=info.content_type)

    return {
        "success": True,
        "key": digest,
        "url": url,
        "content_type": info.content_type,
        "width": info.width,
        "height": info.height,
    }
