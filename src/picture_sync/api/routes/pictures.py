"""Picture listing endpoint."""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from ...storage.metadata import MetadataRecorder, RecorderError
from ..dependencies import get_recorder

router = APIRouter()


@router.get("/pictures")
async def list_pictures(
    uid: str = Query(..., min_length=1),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    recorder: MetadataRecorder = Depends(get_recorder),
):
    """List an owner's pictures in sort order."""
    try:
        pictures = await recorder.list_by_owner(uid, offset=offset, limit=limit)
    except RecorderError as e:
        raise HTTPException(status_code=500, detail=f"Query failed: {e}")

    return {
        "uid": uid,
        "offset": offset,
        "limit": limit,
        "pictures": [p.model_dump(mode="json") for p in pictures],
    }
