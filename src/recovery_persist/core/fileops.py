"""Whole-file helpers: existence, chunked compare, best-effort copy.

Nothing in here raises on I/O failure. Problems are logged with the offending
path and reported through the return value, so a single bad file never stops
a boot-time run.
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 16 * 1024


async def file_exists(path: str | Path) -> bool:
    """True when `path` exists and is readable."""
    return await aiofiles.os.access(path, os.R_OK)


async def file_size(path: str | Path) -> int:
    """Size in bytes, 0 when the file cannot be stat'ed."""
    try:
        st = await aiofiles.os.stat(path)
    except OSError:
        return 0
    return st.st_size


async def _close_checked(f, name: str | Path) -> None:
    """Flush and close a handle, logging if either step fails."""
    try:
        await f.flush()
    except OSError as e:
        logger.error("Error in %s: %s", name, e)
    finally:
        try:
            await f.close()
        except OSError as e:
            logger.error("Error closing %s: %s", name, e)


async def _read_exact(f, size: int) -> bytes | None:
    """Read exactly `size` bytes, or None on EOF before that."""
    buf = bytearray()
    while len(buf) < size:
        chunk = await f.read(size - len(buf))
        if not chunk:
            return None
        buf += chunk
    return bytes(buf)


async def read_bytes_or_empty(path: str | Path) -> bytes:
    """Return file content; a missing or unreadable file reads as empty."""
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except FileNotFoundError:
        return b""
    except OSError as e:
        logger.debug("Treating unreadable %s as empty: %s", path, e)
        return b""


async def write_bytes(path: str | Path, data: bytes) -> int | None:
    """Replace the file content with `data`. Returns bytes written or None."""
    try:
        f = await aiofiles.open(path, "wb")
    except OSError as e:
        logger.error("Can't open %s: %s", path, e)
        return None

    written: int | None = None
    try:
        await f.write(data)
        await f.flush()
        written = len(data)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
    finally:
        await _close_checked(f, path)
    return written


async def unlink_if_exists(path: str | Path) -> bool:
    """Remove `path` when present. Failures are logged, never raised."""
    if not await file_exists(path):
        return False
    try:
        await aiofiles.os.remove(path)
    except OSError as e:
        if e.errno != errno.ENOENT:
            logger.error("Failed to unlink %s: %s", path, e)
        return False
    return True


async def compare_files(
    file1: str | Path,
    file2: str | Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """Byte-exact comparison streamed in `chunk_size` blocks.

    Missing files and size mismatches compare unequal without reading any
    content. A read failure (including a file shrinking mid-compare) is logged
    and compares unequal.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    if not await file_exists(file1) or not await file_exists(file2):
        return False

    size = await file_size(file1)
    if size != await file_size(file2):
        return False

    try:
        async with aiofiles.open(file1, "rb") as f1, aiofiles.open(file2, "rb") as f2:
            remaining = size
            while remaining > 0:
                want = min(remaining, chunk_size)

                block1 = await _read_exact(f1, want)
                if block1 is None:
                    logger.error("Failed to read from %s", file1)
                    return False
                block2 = await _read_exact(f2, want)
                if block2 is None:
                    logger.error("Failed to read from %s", file2)
                    return False
                if block1 != block2:
                    return False
                remaining -= want
    except OSError as e:
        logger.error("Failed to compare %s with %s: %s", file1, file2, e)
        return False
    return True


async def copy_file(
    source: str | Path,
    destination: str | Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Best-effort streaming copy.

    The destination is opened first; when the source then fails to open the
    destination is still closed, leaving an empty file behind.
    """
    try:
        dest = await aiofiles.open(destination, "wb")
    except OSError as e:
        logger.error("Can't open %s: %s", destination, e)
        return

    try:
        try:
            src = await aiofiles.open(source, "rb")
        except OSError as e:
            logger.error("Can't open %s: %s", source, e)
            return

        try:
            while True:
                chunk = await src.read(chunk_size)
                if not chunk:
                    break
                await dest.write(chunk)
        except OSError as e:
            logger.error("Failed to copy %s to %s: %s", source, destination, e)
        finally:
            await _close_checked(src, source)
    finally:
        await _close_checked(dest, destination)
