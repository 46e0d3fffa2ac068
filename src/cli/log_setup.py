"""Logging configuration for the CLI.

Adapters and services log through `logging.getLogger(__name__)` and never
configure handlers themselves; the entry point decides level and rendering.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str | int = logging.WARNING, *, console: Console | None = None) -> None:
    """Install a single Rich handler on stderr at `level`."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(level=level, format="%(name)s: %(message)s", datefmt="[%X]", handlers=[handler], force=True)
    # httpx logs every request at INFO; keep it for --verbose only.
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
    else:
        logging.getLogger("httpx").setLevel(logging.NOTSET)
