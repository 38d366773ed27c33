"""Rich theme for the giftideas CLI."""

from __future__ import annotations

from rich.theme import Theme

THEME = Theme(
    {
        "accent": "magenta",
        "subtitle": "dim",
        "step": "bold magenta",
        "border": "magenta",
        "info": "dim",
        "warning": "yellow",
        "success": "green3",
        "error": "bold red3",
        "label": "dim",
        "value": "white",
    }
)
