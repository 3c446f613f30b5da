"""Entry point for ``python -m promptcast``."""

from __future__ import annotations

from promptcast.cli import main

if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())
