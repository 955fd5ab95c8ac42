"""Persistence core: pmsg reading, dedupe/rotation and console reconciliation."""

from __future__ import annotations

from .config import PersistConfig, resolve_persist_config
from .models import Gate, LogId, LogPriority, PmsgRecord, RotationState, RunResult, Verdict
from .orchestrator import PersistRun, run_persist

__all__ = [
    "Gate",
    "LogId",
    "LogPriority",
    "PersistConfig",
    "PersistRun",
    "PmsgRecord",
    "RotationState",
    "RunResult",
    "Verdict",
    "resolve_persist_config",
    "run_persist",
]
