"""History rotation for the last_log / last_kmsg pair."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import aiofiles.os

from .fileops import DEFAULT_CHUNK_SIZE, copy_file, file_exists

logger = logging.getLogger(__name__)

KEEP_LOG_COUNT = 10


class Rotator(Protocol):
    """Rotation interface used by the sink and the reconciler."""

    async def rotate(self, current: Path, previous: Path) -> None:
        """Move `current` into the `previous` slot, archiving older history."""
        ...


def generation_path(path: Path, n: int) -> Path:
    """`last_kmsg`, `last_kmsg.1`, `last_kmsg.2`, ..."""
    return path if n == 0 else path.with_name(f"{path.name}.{n}")


class LogRotator:
    """Shift numbered generations of `previous`, then archive `current` into it.

    After a rotation `previous` holds what `current` held, `previous.1` holds
    the old `previous` and so on up to `previous.<keep_count>`. `current` is
    copied rather than renamed so it stays in place until its new content is
    written.
    """

    def __init__(self, *, keep_count: int = KEEP_LOG_COUNT, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if keep_count < 1:
            raise ValueError("keep_count must be >= 1")
        self.keep_count = keep_count
        self.chunk_size = chunk_size

    async def rotate(self, current: Path, previous: Path) -> None:
        for i in range(self.keep_count - 1, -1, -1):
            src = generation_path(previous, i)
            dst = generation_path(previous, i + 1)
            try:
                await aiofiles.os.replace(src, dst)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Failed to rotate %s to %s: %s", src, dst, e)

        if await file_exists(current):
            await copy_file(current, previous, chunk_size=self.chunk_size)
        logger.info("Rotated %s into %s", current, previous)
