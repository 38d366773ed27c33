""".env support for the giftideas CLI."""

from __future__ import annotations

import os
from pathlib import Path

QUOTES = ("'", '"')


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return value


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines.

    Comments, malformed lines and empty values are dropped; a leading
    ``export`` is accepted.
    """
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        value = _unquote(value.strip())
        if value:
            values[key] = value
    return values


def load_dotenv(path: str | Path = ".env") -> bool:
    """Export values from ``path`` into ``os.environ``; set variables win."""
    env_path = Path(path)
    if not env_path.is_file():
        return False
    try:
        text = env_path.read_text(encoding="utf-8")
    except OSError:
        return False
    for key, value in parse_dotenv(text).items():
        os.environ.setdefault(key, value)
    return True
