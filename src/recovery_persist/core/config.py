"""Filesystem layout and tunables.

Every path the tool touches lives here so a run can be pointed at a sysroot
(chroot, test sandbox) with a single override.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .models import LogId, LogPriority

LAST_LOG_FILE = Path("/data/misc/recovery/last_log")
LAST_KMSG_FILE = Path("/data/misc/recovery/last_kmsg")
LAST_PMSG_FILE = Path("/sys/fs/pstore/pmsg-ramoops-0")
LAST_CONSOLE_FILE = Path("/sys/fs/pstore/console-ramoops-0")
ALT_LAST_CONSOLE_FILE = Path("/sys/fs/pstore/console-ramoops")
LAST_INSTALL_FILE = Path("/data/misc/recovery/last_install")
LAST_INSTALL_FILE_IN_CACHE = Path("/cache/recovery/last_install")

_PATH_FIELDS = (
    "data_root",
    "last_log",
    "last_kmsg",
    "pmsg_file",
    "last_install",
    "last_install_in_cache",
    "mounts_file",
)


class PersistConfig(BaseModel):
    """Paths and knobs for one persistence run."""

    model_config = ConfigDict(frozen=True)

    data_root: Path = Field(default=Path("/data/misc"), description="Root joined with pmsg filenames.")
    last_log: Path = Field(default=LAST_LOG_FILE, description="Current recovery log slot.")
    last_kmsg: Path = Field(default=LAST_KMSG_FILE, description="Previous/kernel log slot.")
    pmsg_file: Path = Field(default=LAST_PMSG_FILE, description="pstore pmsg ring buffer dump.")
    console_files: tuple[Path, Path] = Field(
        default=(LAST_CONSOLE_FILE, ALT_LAST_CONSOLE_FILE),
        description="Console snapshot candidates, first existing one wins.",
    )
    last_install: Path = Field(default=LAST_INSTALL_FILE)
    last_install_in_cache: Path = Field(default=LAST_INSTALL_FILE_IN_CACHE)
    mounts_file: Path = Field(default=Path("/proc/mounts"))
    cache_mount_point: str = Field(default="/cache", description="Mount point matched in the mount table.")

    pmsg_log_id: LogId = LogId.SYSTEM
    pmsg_min_priority: LogPriority = LogPriority.INFO
    pmsg_prefix: str = "recovery/"

    chunk_size: int = Field(default=16 * 1024, ge=1, description="Block size for compare/copy.")
    keep_log_count: int = Field(default=10, ge=1, description="Numbered generations kept for last_kmsg.")

    def rebased(self, root: str | os.PathLike[str]) -> PersistConfig:
        """Return a copy with every filesystem path moved under `root`."""
        base = Path(root)

        def move(p: Path) -> Path:
            return base / p.relative_to(p.anchor) if p.is_absolute() else base / p

        update: dict[str, object] = {name: move(getattr(self, name)) for name in _PATH_FIELDS}
        update["console_files"] = tuple(move(p) for p in self.console_files)
        return self.model_copy(update=update)


def resolve_persist_config(cfg: PersistConfig | None = None) -> PersistConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = PersistConfig()

    env = os.getenv("RECOVERY_PERSIST_CHUNK_SIZE")
    if env:
        try:
            value = int(env)
        except ValueError as exc:
            raise ValueError("RECOVERY_PERSIST_CHUNK_SIZE must be an integer") from exc
        if value < 1:
            raise ValueError("RECOVERY_PERSIST_CHUNK_SIZE must be >= 1")
        cfg = cfg.model_copy(update={"chunk_size": value})

    sysroot = os.getenv("RECOVERY_PERSIST_SYSROOT")
    if sysroot:
        cfg = cfg.rebased(sysroot)

    return cfg
