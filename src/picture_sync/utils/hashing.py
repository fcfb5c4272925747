"""Incremental content hashing used to derive storage keys.

Files are read one window at a time and fed to a single ``hashlib``
accumulator in ascending order, so peak memory is bounded by the window
size no matter how large the file is.  The digest never depends on the
window size: hashing ``b"hello world"`` in 4-byte windows gives the same
result as hashing it in one piece.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from .sources import ByteSource

logger = structlog.get_logger(__name__)

# 2 MiB
DEFAULT_WINDOW_SIZE = 2 * 1024 * 1024
DEFAULT_ALGORITHM = "md5"


class InvalidInputError(ValueError):
    """Raised when hashing parameters are rejected before any I/O."""


class ReadError(OSError):
    """Raised when a chunk read fails; the computation is abandoned."""


def chunk_count(length: int, window_size: int) -> int:
    """Return ``ceil(length / window_size)``."""
    _check_window_size(window_size)
    return -(-length // window_size)


def iter_windows(length: int, window_size: int) -> Iterator[tuple[int, int]]:
    """Yield the half-open ``(start, end)`` windows covering ``[0, length)``."""
    _check_window_size(window_size)
    for i in range(chunk_count(length, window_size)):
        start = i * window_size
        yield start, min(start + window_size, length)


def new_accumulator(algorithm: str = DEFAULT_ALGORITHM):
    """Return a fresh ``hashlib`` object for *algorithm*."""
    try:
        accumulator = hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Unsupported hash algorithm: {algorithm!r}") from e
    # shake_* digests have no fixed length
    if accumulator.digest_size == 0:
        raise InvalidInputError(f"Variable-length hash algorithm not supported: {algorithm!r}")
    return accumulator


async def compute_digest(
    source: ByteSource,
    window_size: int = DEFAULT_WINDOW_SIZE,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Hash *source* window by window and return the lowercase hex digest.

    Each window is awaited and fed to the accumulator before the next read
    is issued.  Any read failure raises :class:`ReadError` and no digest is
    produced.
    """
    _check_window_size(window_size)
    accumulator = new_accumulator(algorithm)
    length = source.size

    for start, end in iter_windows(length, window_size):
        try:
            chunk = await source.read(start, end)
        except ReadError:
            raise
        except (OSError, ValueError) as e:
            raise ReadError(f"Failed to read bytes {start}-{end}: {e}") from e

        if len(chunk) != end - start:
            raise ReadError(
                f"Short read at {start}-{end}: expected {end - start} bytes, got {len(chunk)}"
            )
        accumulator.update(chunk)

    digest = accumulator.hexdigest()
    logger.debug(
        "digest_computed",
        algorithm=algorithm,
        size_bytes=length,
        window_size=window_size,
        chunks=chunk_count(length, window_size),
        digest=digest,
    )
    return digest


async def compute_file_digest(
    path: str | Path,
    window_size: int = DEFAULT_WINDOW_SIZE,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Return the digest of the file at *path*."""
    from .sources import FileSource

    _check_window_size(window_size)
    return await compute_digest(FileSource(path), window_size, algorithm=algorithm)


def compute_bytes_hash(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Return the hex digest of *data* hashed as a single buffer."""
    accumulator = new_accumulator(algorithm)
    accumulator.update(data)
    return accumulator.hexdigest()


def _check_window_size(window_size: int) -> None:
    if isinstance(window_size, bool) or not isinstance(window_size, int):
        raise InvalidInputError(f"window_size must be an integer, got {window_size!r}")
    if window_size <= 0:
        raise InvalidInputError(f"window_size must be positive, got {window_size}")
