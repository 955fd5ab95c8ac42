"""Run orchestration.

A run walks a fixed sequence of gates::

    CACHE_CHECK -> PMSG_CHECK -> DRAIN -> CLEANUP -> RECONCILE -> DONE

Each gate returns CONTINUE or STOP. STOP ends the run successfully; there is
no failing outcome, problems are only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from .config import PersistConfig
from .fileops import file_exists
from .install_log import report_and_remove_install_log
from .models import Gate, RotationState, RunResult, Verdict
from .mounts import has_mount
from .pmsg import iter_pmsg_records
from .reconcile import reconcile_console_log
from .rotation import LogRotator, Rotator
from .sink import PmsgSink

logger = logging.getLogger(__name__)


class PersistRun:
    """State for a single invocation; not reusable."""

    def __init__(
        self,
        config: PersistConfig,
        *,
        force_persist: bool = False,
        rotator: Rotator | None = None,
    ) -> None:
        self.config = config
        self.force_persist = force_persist
        self.rotator = rotator or LogRotator(
            keep_count=config.keep_log_count,
            chunk_size=config.chunk_size,
        )
        self.state = RotationState()
        self.result = RunResult()

    async def cache_check(self) -> Verdict:
        self.result.has_cache = await has_mount(self.config.mounts_file, self.config.cache_mount_point)
        if not self.result.has_cache:
            return Verdict.CONTINUE

        await report_and_remove_install_log(self.config.last_install_in_cache)

        if self.force_persist:
            logger.info("%s is mounted, persisting anyway (--force-persist)", self.config.cache_mount_point)
            return Verdict.CONTINUE
        logger.debug("%s is mounted, nothing to persist", self.config.cache_mount_point)
        return Verdict.STOP

    async def pmsg_check(self) -> Verdict:
        if await file_exists(self.config.pmsg_file):
            return Verdict.CONTINUE
        logger.debug("No pmsg data at %s", self.config.pmsg_file)
        return Verdict.STOP

    async def drain(self) -> Verdict:
        sink = PmsgSink(self.config, self.rotator, self.state)
        async for record in iter_pmsg_records(
            self.config.pmsg_file,
            log_id=self.config.pmsg_log_id,
            min_priority=self.config.pmsg_min_priority,
            prefix=self.config.pmsg_prefix,
        ):
            self.result.records_seen += 1
            await sink.save(record)
        self.result.records_written = sink.files_written
        return Verdict.CONTINUE

    async def cleanup(self) -> Verdict:
        # Cache-less devices got last_install through pmsg; only sideload history matters.
        if not self.result.has_cache:
            await report_and_remove_install_log(self.config.last_install)
        return Verdict.CONTINUE

    async def reconcile(self) -> Verdict:
        self.result.console_copied = await reconcile_console_log(self.config, self.rotator, self.state)
        return Verdict.CONTINUE

    def _steps(self) -> list[tuple[Gate, Callable[[], Awaitable[Verdict]]]]:
        return [
            (Gate.CACHE_CHECK, self.cache_check),
            (Gate.PMSG_CHECK, self.pmsg_check),
            (Gate.DRAIN, self.drain),
            (Gate.CLEANUP, self.cleanup),
            (Gate.RECONCILE, self.reconcile),
        ]

    async def run(self) -> RunResult:
        for gate, step in self._steps():
            self.result.stopped_at = gate
            if await step() is Verdict.STOP:
                break
        else:
            self.result.stopped_at = Gate.DONE

        self.result.rotations = self.state.rotations
        logger.debug("Run finished: %s", self.result)
        return self.result


async def run_persist(
    config: PersistConfig,
    *,
    force_persist: bool = False,
    rotator: Rotator | None = None,
) -> RunResult:
    """Execute one persistence run."""
    return await PersistRun(config, force_persist=force_persist, rotator=rotator).run()
