from __future__ import annotations

import struct
from collections.abc import Callable
from pathlib import Path

import pytest

from recovery_persist.core.config import PersistConfig
from recovery_persist.core.models import LogId, LogPriority

PROC_MOUNTS = (
    "rootfs / rootfs ro,seclabel 0 0\n"
    "tmpfs /dev tmpfs rw,seclabel,nosuid,relatime,mode=755 0 0\n"
    "/dev/block/dm-5 /data f2fs rw,lazytime,seclabel,nosuid,nodev 0 0\n"
    "pstore /sys/fs/pstore pstore rw,seclabel,nosuid,nodev,noexec,relatime 0 0\n"
)


def pmsg_record(
    tag: bytes,
    data: bytes,
    *,
    seq: int = 0,
    log_id: int = LogId.SYSTEM,
    prio: int = LogPriority.INFO,
    sec: int = 1_700_000_000,
    nsec: int | None = None,
) -> bytes:
    """Encode one pmsg file chunk the way liblog writes it."""
    payload = bytes([prio]) + tag + b"\0" + data
    length = 7 + 11 + len(payload)
    return (
        struct.pack("<cHHH", b"l", length, 0, 1)
        + struct.pack("<BHII", log_id, 42, sec, seq * 1000 if nsec is None else nsec)
        + payload
    )


@pytest.fixture
def config(tmp_path: Path) -> PersistConfig:
    cfg = PersistConfig().rebased(tmp_path)
    cfg.last_log.parent.mkdir(parents=True)
    cfg.pmsg_file.parent.mkdir(parents=True)
    cfg.mounts_file.parent.mkdir(parents=True)
    cfg.last_install_in_cache.parent.mkdir(parents=True)
    cfg.mounts_file.write_text(PROC_MOUNTS, encoding="utf-8")
    return cfg


@pytest.fixture
def write_pmsg() -> Callable[[Path, list[bytes]], None]:
    def _write(path: Path, records: list[bytes]) -> None:
        path.write_bytes(b"".join(records))

    return _write


class RecordingRotator:
    """Rotator double that only records its calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    async def rotate(self, current: Path, previous: Path) -> None:
        self.calls.append((current, previous))


@pytest.fixture
def rotator() -> RecordingRotator:
    return RecordingRotator()


@pytest.fixture
def chunk() -> Callable[..., bytes]:
    return pmsg_record
