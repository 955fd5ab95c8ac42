"""Per-record persistence: dedupe against disk, rotate once, overwrite."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import PersistConfig
from .fileops import read_bytes_or_empty, write_bytes
from .models import PmsgRecord, RotationState
from .rotation import Rotator

logger = logging.getLogger(__name__)


class PmsgSink:
    """Persist pmsg records under the data root.

    Only the first record whose content differs from disk triggers a rotation;
    the shared `RotationState` carries that fact to the console reconciler.
    """

    def __init__(self, config: PersistConfig, rotator: Rotator, state: RotationState) -> None:
        self.config = config
        self.rotator = rotator
        self.state = state
        self.files_written = 0

    def destination_for(self, filename: str) -> Path | None:
        """Join `filename` onto the data root; None if it escapes the root."""
        if ".." in Path(filename).parts:
            return None
        return self.config.data_root / filename.lstrip("/")

    async def save(self, record: PmsgRecord) -> int | None:
        """Persist one record.

        Returns the payload length when the record is already on disk, the
        number of bytes written otherwise, or None on failure.
        """
        destination = self.destination_for(record.filename)
        if destination is None:
            logger.error("Refusing to persist %r outside %s", record.filename, self.config.data_root)
            return None

        existing = await read_bytes_or_empty(destination)
        if record.payload == existing:
            logger.debug("%s unchanged (%d bytes)", destination, record.length)
            return record.length

        # One file, one rotation: later records land on the already rotated pair.
        if not self.state.rotated:
            await self.rotator.rotate(self.config.last_log, self.config.last_kmsg)
            self.state.mark_rotated()

        written = await write_bytes(destination, record.payload)
        if written is not None:
            self.files_written += 1
            logger.info("Persisted %s (%d bytes)", destination, written)
        return written
