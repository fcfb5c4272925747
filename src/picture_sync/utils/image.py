"""Image detection and inspection for uploaded pictures."""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


class InvalidImageError(ValueError):
    """Raised when uploaded bytes are not a decodable image."""


@dataclass(frozen=True)
class ImageInfo:
    image_type: str
    content_type: str
    width: int
    height: int


_CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
}


def detect_image_type(file_bytes: bytes) -> str:
    """Detect image type from magic bytes.

    Returns one of ``"png"``, ``"jpeg"``, ``"gif"``, ``"webp"``, ``"bmp"``,
    ``"tiff"``, or ``"unknown"``.
    """
    if file_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "png"
    if file_bytes[:3] == b"\xff\xd8\xff":
        return "jpeg"
    if file_bytes[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if file_bytes[:4] == b"RIFF" and file_bytes[8:12] == b"WEBP":
        return "webp"
    if file_bytes[:2] == b"BM":
        return "bmp"
    if file_bytes[:4] in (b"II*\x00", b"MM\x00*"):
        return "tiff"
    return "unknown"


def content_type_for(image_type: str) -> str:
    """Return the MIME type for an image type from :func:`detect_image_type`."""
    return _CONTENT_TYPES.get(image_type, "application/octet-stream")


def inspect_image(file_bytes: bytes) -> ImageInfo:
    """Identify and verify an image, returning its type and dimensions.

    Raises :class:`InvalidImageError` if the bytes are not a supported image
    or Pillow cannot decode the header.
    """
    image_type = detect_image_type(file_bytes)
    if image_type == "unknown":
        raise InvalidImageError("Unrecognised image format")

    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError(f"Corrupt {image_type} image: {e}") from e

    return ImageInfo(
        image_type=image_type,
        content_type=content_type_for(image_type),
        width=width,
        height=height,
    )
