"""Submission flow: hash a local picture, upload it, then record its metadata."""
from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import structlog

from .utils.hashing import DEFAULT_ALGORITHM, DEFAULT_WINDOW_SIZE, compute_digest
from .utils.sources import FileSource

logger = structlog.get_logger(__name__)


class SubmissionError(RuntimeError):
    """Raised when a picture cannot be submitted."""


@dataclass
class SubmissionResult:
    key: str
    url: str
    meta: dict = field(default_factory=dict)


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


class SubmissionClient:
    """Client for the ``/upload`` and ``/save`` endpoints.

    The two calls are made in order.  If ``/save`` fails the uploaded object
    is left in the store; re-submitting the same file reuses its key.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        client: httpx.AsyncClient | None = None,
        window_size: int = DEFAULT_WINDOW_SIZE,
        algorithm: str = DEFAULT_ALGORITHM,
        timeout: float = 60.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._window_size = window_size
        self._algorithm = algorithm

    async def __aenter__(self) -> SubmissionClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def submit(
        self,
        path: str | Path,
        *,
        uid: str,
        name: str,
        order_id: str,
        desc: str = "",
    ) -> SubmissionResult:
        path = Path(path)
        content_type = guess_content_type(path)
        if not content_type.startswith("image/"):
            raise SubmissionError(f"Please choose an image file: {path.name}")
        if not uid or not name or not order_id:
            raise SubmissionError("uid, name and order_id are required")

        source = FileSource(path)
        digest = await compute_digest(source, self._window_size, algorithm=self._algorithm)
        logger.info("submission_hashed", path=str(path), digest=digest, size_bytes=source.size)

        # httpx streams the multipart body from the handle; the server recomputes
        # the digest, so a file changed since hashing is rejected there
        with open(path, "rb") as fh:
            upload = await self._post(
                "/upload",
                "Upload failed",
                files={"file": (path.name, fh, content_type)},
                data={"md5": digest},
            )
        save = await self._post(
            "/save",
            "Save failed",
            json={"uid": uid, "name": name, "desc": desc, "link": digest, "orderId": order_id},
        )

        logger.info("submission_complete", key=upload["key"], url=upload["url"])
        return SubmissionResult(key=upload["key"], url=upload["url"], meta=save.get("meta") or {})

    async def _post(self, url: str, failure: str, **kwargs) -> dict:
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise SubmissionError(f"{failure}: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.warning("submission_step_failed", url=url, status=response.status_code, detail=detail)
            raise SubmissionError(f"{failure}: {response.status_code} {detail}")

        return response.json()
