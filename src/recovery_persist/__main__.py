"""Module entrypoint.

Allows:
    python -m recovery_persist [--force-persist]
"""

from __future__ import annotations

from recovery_persist.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
