"""Async CRUD repository for picture metadata."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from picture_sync.storage.models import Picture


class PictureRepo:
    """CRUD operations for the ``linsv_picture`` table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, picture: Picture) -> Picture:
        self._session.add(picture)
        await self._session.flush()
        await self._session.refresh(picture)
        return picture

    async def list_by_uid(self, uid: str, *, offset: int = 0, limit: int = 50) -> list[Picture]:
        stmt = (
            select(Picture)
            .where(Picture.uid == uid)
            .order_by(func.length(Picture.order_id), Picture.order_id, Picture.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
