"""Metadata recorders: persist picture records keyed by storage digest."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod

import httpx
import structlog
from sqlalchemy.exc import SQLAlchemyError

from ..models.picture import PictureRecord, StoredPicture
from .database import AsyncSessionLocal
from .models import Picture
from .repositories import PictureRepo

logger = structlog.get_logger(__name__)

D1_API_BASE = "https://api.cloudflare.com/client/v4"

D1_INSERT_SQL = (
    'INSERT INTO linsv_picture (uid, name, "desc", link, order_id, create_time) '
    "VALUES (?, ?, ?, ?, ?, datetime('now'))"
)
D1_SELECT_BY_UID_SQL = (
    'SELECT id, uid, name, "desc", link, order_id, create_time FROM linsv_picture '
    "WHERE uid = ? ORDER BY length(order_id), order_id, id LIMIT ? OFFSET ?"
)


class RecorderError(RuntimeError):
    """Raised when a metadata record cannot be written or read."""


class MetadataRecorder(ABC):
    """Abstract base class for metadata recorders."""

    @abstractmethod
    async def insert(self, record: PictureRecord) -> dict:
        """Insert *record* and return backend metadata about the write."""
        ...

    @abstractmethod
    async def list_by_owner(self, uid: str, *, offset: int = 0, limit: int = 50) -> list[StoredPicture]:
        """Return records for *uid* ordered by sort order.

        Shorter ``order_id`` values sort first, so "2" precedes "10".
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""


class SqlMetadataRecorder(MetadataRecorder):
    """Records pictures through the SQLAlchemy async session."""

    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def insert(self, record: PictureRecord) -> dict:
        try:
            async with self._session_factory() as session:
                repo = PictureRepo(session)
                picture = await repo.create(Picture(**record.model_dump()))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("sql_insert_failed", link=record.link, uid=record.uid, error=str(e))
            raise RecorderError(f"Database insert failed: {e}") from e

        logger.info("picture_recorded", backend="sql", picture_id=picture.id, link=record.link, uid=record.uid)
        return {"last_row_id": picture.id, "changes": 1}

    async def list_by_owner(self, uid: str, *, offset: int = 0, limit: int = 50) -> list[StoredPicture]:
        try:
            async with self._session_factory() as session:
                rows = await PictureRepo(session).list_by_uid(uid, offset=offset, limit=limit)
        except SQLAlchemyError as e:
            raise RecorderError(f"Database query failed: {e}") from e

        return [
            StoredPicture(
                id=row.id,
                uid=row.uid,
                name=row.name,
                desc=row.desc,
                link=row.link,
                order_id=row.order_id,
                create_time=row.create_time,
            )
            for row in rows
        ]


class D1MetadataRecorder(MetadataRecorder):
    """Records pictures in a Cloudflare D1 database via its HTTP query API."""

    def __init__(
        self,
        account_id: str,
        database_id: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not account_id or not database_id or not api_token:
            raise ValueError("account_id, database_id and api_token are required for D1")
        self._url = f"{D1_API_BASE}/accounts/{account_id}/d1/database/{database_id}/query"
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def insert(self, record: PictureRecord) -> dict:
        result = await self._query(
            D1_INSERT_SQL,
            [record.uid, record.name, record.desc, record.link, record.order_id],
        )
        meta = result.get("meta", {})
        logger.info("picture_recorded", backend="d1", link=record.link, uid=record.uid,
                    last_row_id=meta.get("last_row_id"))
        return meta

    async def list_by_owner(self, uid: str, *, offset: int = 0, limit: int = 50) -> list[StoredPicture]:
        result = await self._query(D1_SELECT_BY_UID_SQL, [uid, limit, offset])
        return [StoredPicture(**row) for row in result.get("results", [])]

    async def close(self) -> None:
        await self._client.aclose()

    async def _query(self, sql: str, params: list[str | int]) -> dict:
        try:
            response = await self._client.post(
                self._url, json={"sql": sql, "params": params}, headers=self._headers,
            )
        except httpx.HTTPError as e:
            logger.error("d1_request_failed", error=str(e))
            raise RecorderError(f"D1 request failed: {e}") from e

        if response.is_error:
            logger.error("d1_api_error", status=response.status_code, body=response.text)
            raise RecorderError(f"D1 API error: {response.status_code} {response.text}")

        data = response.json()
        if not data.get("success"):
            raise RecorderError(f"D1 query failed: {json.dumps(data.get('errors'))}")
        return data["result"][0]
