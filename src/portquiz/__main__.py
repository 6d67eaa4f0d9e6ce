"""Allow ``python -m portquiz``."""

from __future__ import annotations

from .main import run

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(run())
