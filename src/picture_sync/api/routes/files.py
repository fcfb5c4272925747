"""Serve objects written by the local object store."""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ...storage.local import LocalObjectStore
from ...storage.object_store import ObjectStore, StorageError
from ..dependencies import get_object_store

router = APIRouter()


@router.get("/files/{key}")
async def get_file(key: str, store: ObjectStore = Depends(get_object_store)):
    """Return a stored picture.  Only available with the local backend."""
    if not isinstance(store, LocalObjectStore):
        raise HTTPException(status_code=404, detail="Not served by this backend")

    try:
        path = store.path_for(key)
    except StorageError:
        raise HTTPException(status_code=404, detail="Not found")

    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    return FileResponse(path, media_type=store.content_type_of(key) or "application/octet-stream")
