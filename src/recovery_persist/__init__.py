"""Persist recovery logs from pstore into /data/misc/recovery after reboot."""

from __future__ import annotations

__version__ = "0.1.0"
