"""Keep last_kmsg consistent with the console ramoops snapshot."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import PersistConfig
from .fileops import compare_files, copy_file, file_exists
from .models import RotationState
from .rotation import Rotator

logger = logging.getLogger(__name__)


async def find_console_snapshot(config: PersistConfig) -> Path | None:
    """First existing console snapshot, in priority order."""
    for candidate in config.console_files:
        if await file_exists(candidate):
            return candidate
    return None


async def reconcile_console_log(
    config: PersistConfig,
    rotator: Rotator,
    state: RotationState,
) -> bool:
    """Rotate again and copy the console snapshot into last_kmsg if it differs.

    Runs at most once per `state` and only after a pmsg-triggered rotation.
    Returns True when the console snapshot was copied.
    """
    if state.reconciled:
        return False
    state.reconciled = True

    if not state.rotated:
        return False

    console = await find_console_snapshot(config)
    if console is None:
        return False

    for candidate in config.console_files:
        if await compare_files(config.last_kmsg, candidate, chunk_size=config.chunk_size):
            logger.debug("%s already matches %s", config.last_kmsg, candidate)
            return False

    # A console mismatch rotates the pair a second time this run.
    await rotator.rotate(config.last_log, config.last_kmsg)
    state.mark_rotated()

    await copy_file(console, config.last_kmsg, chunk_size=config.chunk_size)
    logger.info("Copied %s to %s", console, config.last_kmsg)
    return True
