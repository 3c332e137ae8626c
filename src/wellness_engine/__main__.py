"""Punto de entrada: ``python -m wellness_engine``."""

from __future__ import annotations

from wellness_engine.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
