"""Logging setup for the giftideas CLI.

Library modules only create module loggers; handlers are installed here, once,
by the CLI entrypoint. Records go to stderr so JSON written to stdout stays
machine-readable.
"""

from __future__ import annotations

import logging
import os

from rich.logging import RichHandler

from giftideas.ui.console import get_err_console

DEFAULT_LEVEL = "WARNING"
LEVEL_ENV_VAR = "GIFTIDEAS_LOG_LEVEL"


def resolve_level(level: str | None = None) -> int:
    name = (level or os.getenv(LEVEL_ENV_VAR) or DEFAULT_LEVEL).strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level or name}")
    return resolved


def configure_logging(level: str | None = None) -> None:
    handler = RichHandler(
        console=get_err_console(),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    root = logging.getLogger("giftideas")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(resolve_level(level))
    root.propagate = False
