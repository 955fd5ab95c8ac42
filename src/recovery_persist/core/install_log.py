"""Report and remove the last_install marker left by recovery.

The file looks like::

    /sideload/package.zip
    1
    time_total: 98
    retry: 0
    bytes_written_system: 1046499328

Line one is the package, line two the result (1 success, 0 failure), the rest
are integer metrics.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .fileops import file_exists, read_bytes_or_empty, unlink_if_exists

logger = logging.getLogger(__name__)


def parse_last_install(text: str) -> dict[str, int]:
    """Extract the install result and integer metrics from last_install."""
    lines = text.splitlines()
    metrics: dict[str, int] = {}
    if len(lines) >= 2 and lines[1].strip() in ("0", "1"):
        metrics["ota_result"] = int(lines[1].strip())

    for line in lines[2:]:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        try:
            metrics[key] = int(value.strip())
        except ValueError:
            logger.debug("Ignoring non-integer install metric %r", line)
    return metrics


async def report_and_remove_install_log(path: str | Path) -> dict[str, int] | None:
    """Log the metrics in `path` once, then delete it so they are not reported twice."""
    if not await file_exists(path):
        return None

    raw = await read_bytes_or_empty(path)
    metrics = parse_last_install(raw.decode("utf-8", errors="replace"))
    if metrics:
        logger.info(
            "Install metrics from %s: %s",
            path,
            ", ".join(f"{k}={v}" for k, v in metrics.items()),
        )

    await unlink_if_exists(path)
    return metrics
