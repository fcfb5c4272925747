"""Test metadata recorders."""
import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError

from picture_sync.config import Settings
from picture_sync.storage.database import close_db, create_tables, init_db
from picture_sync.storage.factory import build_recorder
from picture_sync.storage.metadata import (
    D1MetadataRecorder,
    RecorderError,
    SqlMetadataRecorder,
)
from tests.factories import make_record

D1_URL = "https://api.cloudflare.com/client/v4/accounts/acct/d1/database/db-1/query"


def d1_recorder(handler) -> D1MetadataRecorder:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return D1MetadataRecorder("acct", "db-1", "token-123", client=client)


def d1_ok(result: dict) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "errors": [], "result": [result]})


class TestD1MetadataRecorder:
    @pytest.mark.asyncio
    async def test_insert_posts_query(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return d1_ok({"meta": {"last_row_id": 7, "changes": 1}, "results": []})

        recorder = d1_recorder(handler)
        meta = await recorder.insert(make_record(uid="u1", name="Cat", link="abc", order_id="3"))

        assert meta == {"last_row_id": 7, "changes": 1}
        assert seen["url"] == D1_URL
        assert seen["auth"] == "Bearer token-123"
        assert seen["body"]["sql"].startswith("INSERT INTO linsv_picture")
        assert seen["body"]["params"] == ["u1", "Cat", "", "abc", "3"]
        await recorder.close()

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        recorder = d1_recorder(lambda request: httpx.Response(500, text="upstream down"))
        with pytest.raises(RecorderError, match="500"):
            await recorder.insert(make_record())

    @pytest.mark.asyncio
    async def test_unsuccessful_query_raises(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "errors": [{"message": "no such table"}]})

        with pytest.raises(RecorderError, match="no such table"):
            await d1_recorder(handler).insert(make_record())

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RecorderError, match="refused"):
            await d1_recorder(handler).insert(make_record())

    @pytest.mark.asyncio
    async def test_list_by_owner(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["params"] == ["u1", 10, 0]
            assert "ORDER BY length(order_id), order_id" in body["sql"]
            return d1_ok({"results": [{
                "id": 4, "uid": "u1", "name": "Cat", "desc": "", "link": "abc",
                "order_id": "1", "create_time": "2026-01-01 10:00:00",
            }]})

        pictures = await d1_recorder(handler).list_by_owner("u1", limit=10)
        assert [(p.id, p.link) for p in pictures] == [(4, "abc")]

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            D1MetadataRecorder("acct", "", "token")


class TestSqlMetadataRecorder:
    @pytest.mark.asyncio
    async def test_insert_and_list(self, tmp_path):
        init_db(f"sqlite+aiosqlite:///{tmp_path}/pictures.db")
        try:
            await create_tables()
            recorder = SqlMetadataRecorder()

            first = await recorder.insert(make_record(uid="u1", name="B", order_id="2", link="k2"))
            second = await recorder.insert(make_record(uid="u1", name="A", order_id="1", link="k1"))
            await recorder.insert(make_record(uid="u2", name="C", order_id="1", link="k3"))

            assert first["changes"] == 1
            assert second["last_row_id"] != first["last_row_id"]

            pictures = await recorder.list_by_owner("u1")
            assert [p.name for p in pictures] == ["A", "B"]
            assert all(p.create_time is not None for p in pictures)
        finally:
            await close_db()

    @pytest.mark.asyncio
    async def test_numeric_order_ids_sort_by_length_first(self, tmp_path):
        init_db(f"sqlite+aiosqlite:///{tmp_path}/pictures.db")
        try:
            await create_tables()
            recorder = SqlMetadataRecorder()
            for order_id in ["10", "2", "1"]:
                await recorder.insert(make_record(uid="u1", order_id=order_id, link=f"k{order_id}"))

            pictures = await recorder.list_by_owner("u1")
            assert [p.order_id for p in pictures] == ["1", "2", "10"]
        finally:
            await close_db()

    @pytest.mark.asyncio
    async def test_database_error_raises(self):
        @asynccontextmanager
        async def broken_session():
            session = MagicMock()
            session.flush = AsyncMock(side_effect=SQLAlchemyError("db down"))
            yield session

        recorder = SqlMetadataRecorder(session_factory=broken_session)
        with pytest.raises(RecorderError, match="db down"):
            await recorder.insert(make_record())


class TestBuildRecorder:
    def test_sql_default(self):
        assert isinstance(build_recorder(Settings()), SqlMetadataRecorder)

    def test_d1(self):
        recorder = build_recorder(Settings(
            recorder_backend="d1", d1_account_id="a", d1_database_id="d", d1_api_token="t",
        ))
        assert isinstance(recorder, D1MetadataRecorder)
