"""Logging setup shared by the CLI and API entrypoints."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    if level is None:
        from core.config import get_settings

        level = get_settings().log_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = int(level)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=_FORMAT)
    root.setLevel(resolved)


__all__ = ["configure_logging"]
