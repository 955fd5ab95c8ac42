"""Core data models for log persistence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class LogId(IntEnum):
    """Android logger buffer ids as stored in the pmsg log header."""

    MAIN = 0
    RADIO = 1
    EVENTS = 2
    SYSTEM = 3
    CRASH = 4
    STATS = 5
    SECURITY = 6
    KERNEL = 7


class LogPriority(IntEnum):
    """Android log priorities (first payload byte of a pmsg record)."""

    UNKNOWN = 0
    DEFAULT = 1
    VERBOSE = 2
    DEBUG = 3
    INFO = 4
    WARN = 5
    ERROR = 6
    FATAL = 7
    SILENT = 8


@dataclass(frozen=True, slots=True)
class PmsgRecord:
    """One file reassembled from the pmsg buffer."""

    log_id: LogId
    priority: LogPriority
    filename: str  # relative to the data root, e.g. "recovery/last_log"
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload)


@dataclass(slots=True)
class RotationState:
    """Per-run rotation bookkeeping shared by the sink and the reconciler.

    `rotated` flips to True on the first rotation and is never reset.
    `rotations` counts every rotator call, which can reach 2 when the console
    reconciliation rotates again after a pmsg-triggered rotation.
    """

    rotated: bool = False
    rotations: int = 0
    reconciled: bool = False

    def mark_rotated(self) -> None:
        self.rotated = True
        self.rotations += 1


class Gate(str, Enum):
    """Orchestrator stages, in execution order."""

    CACHE_CHECK = "cache_check"
    PMSG_CHECK = "pmsg_check"
    DRAIN = "drain"
    CLEANUP = "cleanup"
    RECONCILE = "reconcile"
    DONE = "done"


class Verdict(str, Enum):
    CONTINUE = "continue"
    STOP = "stop"


@dataclass(slots=True)
class RunResult:
    """Outcome of one persistence run (exit code is 0 regardless)."""

    stopped_at: Gate = Gate.CACHE_CHECK
    has_cache: bool = False
    records_seen: int = 0
    records_written: int = 0
    rotations: int = 0
    console_copied: bool = False
