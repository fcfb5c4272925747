"""Test the submission client."""
import hashlib
import json
from pathlib import Path

import httpx
import pytest

from picture_sync.client import SubmissionClient, SubmissionError
from tests.factories import make_image_bytes


@pytest.fixture
def picture(tmp_path):
    path = tmp_path / "sunset.png"
    path.write_bytes(make_image_bytes(6, 6))
    return path


class FakeApi:
    """Records calls to /upload and /save and answers with configurable statuses."""

    def __init__(self, upload_status: int = 200, save_status: int = 200):
        self.upload_status = upload_status
        self.save_status = save_status
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/upload":
            if self.upload_status != 200:
                return httpx.Response(self.upload_status, json={"detail": "Upload failed: boom"})
            return httpx.Response(200, json={"success": True, "key": "k", "url": "http://cdn/k"})
        if request.url.path == "/save":
            if self.save_status != 200:
                return httpx.Response(self.save_status, json={"detail": "Missing required fields"})
            return httpx.Response(200, json={"success": True, "meta": {"changes": 1}})
        return httpx.Response(404)


def make_client(api: FakeApi, **kwargs) -> SubmissionClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(api), base_url="http://test")
    return SubmissionClient(client=http, **kwargs)


class TestSubmissionClient:
    @pytest.mark.asyncio
    async def test_upload_then_save(self, picture):
        api = FakeApi()
        digest = hashlib.md5(picture.read_bytes()).hexdigest()

        result = await make_client(api, window_size=16).submit(
            picture, uid="u1", name="Sunset", order_id="3",
        )

        assert result.url == "http://cdn/k"
        assert result.meta == {"changes": 1}
        assert [c.url.path for c in api.calls] == ["/upload", "/save"]
        upload_body = api.calls[0].content
        assert digest.encode() in upload_body
        assert b'filename="sunset.png"' in upload_body
        assert json.loads(api.calls[1].content) == {
            "uid": "u1", "name": "Sunset", "desc": "", "link": digest, "orderId": "3",
        }

    @pytest.mark.asyncio
    async def test_upload_streams_from_file_handle(self, picture, monkeypatch):
        content = picture.read_bytes()
        digest = hashlib.md5(content).hexdigest()

        def no_whole_file_reads(self):
            raise AssertionError("whole-file read")

        monkeypatch.setattr(Path, "read_bytes", no_whole_file_reads)
        api = FakeApi()

        await make_client(api, window_size=16).submit(picture, uid="u1", name="Sunset", order_id="3")

        upload_body = api.calls[0].content
        assert content in upload_body
        assert digest.encode() in upload_body

    @pytest.mark.asyncio
    async def test_rejects_non_image_without_requests(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hi")
        api = FakeApi()

        with pytest.raises(SubmissionError, match="image"):
            await make_client(api).submit(path, uid="u", name="n", order_id="1")
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_requires_fields(self, picture):
        with pytest.raises(SubmissionError):
            await make_client(FakeApi()).submit(picture, uid="", name="n", order_id="1")

    @pytest.mark.asyncio
    async def test_upload_failure_skips_save(self, picture):
        api = FakeApi(upload_status=500)

        with pytest.raises(SubmissionError, match="Upload failed"):
            await make_client(api).submit(picture, uid="u", name="n", order_id="1")
        assert [c.url.path for c in api.calls] == ["/upload"]

    @pytest.mark.asyncio
    async def test_save_failure(self, picture):
        api = FakeApi(save_status=400)

        with pytest.raises(SubmissionError, match="Save failed"):
            await make_client(api).submit(picture, uid="u", name="n", order_id="1")
        assert [c.url.path for c in api.calls] == ["/upload", "/save"]

    @pytest.mark.asyncio
    async def test_connection_error(self, picture):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test")
        with pytest.raises(SubmissionError, match="refused"):
            await SubmissionClient(client=http).submit(picture, uid="u", name="n", order_id="1")
