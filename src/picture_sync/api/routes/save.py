"""Save route: record picture metadata for a stored object."""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
import structlog

from ...models.picture import SaveRequest
from ...storage.metadata import MetadataRecorder, RecorderError
from ..dependencies import get_recorder

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/save")
async def save_picture(body: SaveRequest, recorder: MetadataRecorder = Depends(get_recorder)):
    """Insert a metadata row linking ``uid`` to the object stored at ``link``.

    Nothing checks that ``link`` was actually uploaded; a failed save after a
    successful upload leaves the object in place.
    """
    missing = body.missing_fields()
    if missing:
        logger.info("save_rejected", missing=missing)
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        meta = await recorder.insert(body.to_record())
    except RecorderError as e:
        raise HTTPException(status_code=500, detail=f"Save failed: {e}")

    return {"success": True, "meta": meta}
