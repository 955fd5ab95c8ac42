"""Command line entrypoint.

Usage: recovery-persist [--force-persist]

On devices without a /cache mount, the recovery/ files that recovery logged
into /sys/fs/pstore/pmsg-ramoops-0 are moved into /data/misc/recovery/,
rotating history when their content changed.

    --force-persist  ignore the /cache mount and persist anyway.

The exit status is always 0; failures are only logged.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence

from recovery_persist.core.config import resolve_persist_config
from recovery_persist.core.orchestrator import run_persist

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to stderr; the level comes from RECOVERY_PERSIST_LOG_LEVEL."""
    level_name = os.getenv("RECOVERY_PERSIST_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="recovery-persist",
        allow_abbrev=False,
        exit_on_error=False,
        description="Persist recovery logs from pmsg into /data/misc/recovery.",
    )
    p.add_argument(
        "--force-persist",
        action="store_true",
        help="Ignore the /cache mount and always rotate in the pmsg contents",
    )
    return p


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    try:
        args, extra = build_parser().parse_known_args(argv)
    except argparse.ArgumentError as e:
        LOGGER.error("Invalid arguments: %s", e)
        return 0
    if extra:
        LOGGER.warning("Ignoring unexpected arguments: %s", " ".join(extra))

    try:
        config = resolve_persist_config()
    except ValueError as e:
        LOGGER.error("Invalid configuration: %s", e)
        return 0

    result = asyncio.run(run_persist(config, force_persist=args.force_persist))
    LOGGER.debug(
        "stopped_at=%s rotations=%d written=%d",
        result.stopped_at.value,
        result.rotations,
        result.records_written,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
