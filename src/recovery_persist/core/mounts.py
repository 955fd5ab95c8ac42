"""Mount table probing."""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles

logger = logging.getLogger(__name__)


async def has_mount(mounts_file: str | Path, mount_point: str) -> bool:
    """True if any mount table line mentions `mount_point` as a field.

    An unreadable mount table is logged and reported as "not mounted".
    """
    needle = f" {mount_point} "
    try:
        async with aiofiles.open(mounts_file, encoding="utf-8", errors="replace") as f:
            async for line in f:
                if needle in line:
                    return True
    except OSError as e:
        logger.error("failed to open %s: %s", mounts_file, e)
    return False
