"""Status helpers for the giftideas CLI."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from giftideas.ui.console import get_err_console


@contextmanager
def status_spinner(message: str) -> Iterator[object]:
    console = get_err_console()
    with console.status(message, spinner="dots", spinner_style="accent") as status:
        yield status
