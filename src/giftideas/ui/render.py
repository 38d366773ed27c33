"""Render helpers for the giftideas CLI."""

from __future__ import annotations

from typing import Mapping, Sequence

from rich import box
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from giftideas.ideas import GeneratedIdeas, PaginatedIdeas
from giftideas.ui.console import get_console, get_err_console


def _panel(body, title: str, *, border_style: str = "border") -> Panel:
    return Panel(
        body,
        title=Text(title, style="step"),
        title_align="left",
        box=box.ROUNDED,
        border_style=border_style,
        padding=(0, 2),
        expand=True,
    )


def render_info(text: str) -> None:
    get_console().print(text, style="info", markup=False)


def render_success(text: str) -> None:
    get_console().print(text, style="success", markup=False)


def render_error(text: str) -> None:
    panel = Panel(
        Text(text, style="error"),
        box=box.ROUNDED,
        border_style="error",
        padding=(0, 2),
        expand=True,
    )
    get_err_console().print(panel)


def render_summary_table(rows: Mapping[str, str] | Sequence[tuple[str, str]], title: str = "Summary") -> None:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="label", no_wrap=True, justify="right")
    table.add_column(style="value")

    items = rows.items() if hasattr(rows, "items") else rows
    for key, value in items:
        table.add_row(Text(str(key), style="label"), Text(str(value), style="value"))
    get_console().print(_panel(table, title))


def render_validation_panel(title: str, issues: Sequence[str], *, style: str) -> None:
    lines = [Text(f"- {issue}", style=style) for issue in issues]
    get_err_console().print(_panel(Group(*lines), title))


def render_suggestions(result: GeneratedIdeas) -> None:
    console = get_console()
    if not result.suggestions:
        console.print(_panel(Text("The model returned no suggestions.", style="warning"), "Gift ideas"))
        return
    lines = [
        Text.assemble((f"{index:>2}. ", "accent"), (item.content, "value"))
        for index, item in enumerate(result.suggestions, start=1)
    ]
    lines.append(Text(""))
    lines.append(
        Text(
            f"{result.model} · {result.usage.total_tokens} tokens · {result.generated_at}",
            style="subtitle",
        )
    )
    console.print(_panel(Group(*lines), "Gift ideas"))


def render_ideas_table(result: PaginatedIdeas) -> None:
    page = result.pagination
    table = Table(box=box.SIMPLE_HEAD, expand=True)
    table.add_column("ID", style="label", justify="right", no_wrap=True)
    table.add_column("Name", style="value")
    table.add_column("Source", style="accent", no_wrap=True)
    table.add_column("Relation", style="value")
    table.add_column("Occasion", style="value")
    table.add_column("Updated", style="label", no_wrap=True)
    for record in result.data:
        table.add_row(
            str(record.id),
            record.name,
            record.source,
            record.relation_name or "-",
            record.occasion_name or "-",
            record.updated_at,
        )
    caption = f"Page {page.page} of {max(page.total_pages, 1)} · {page.total} idea(s)"
    get_console().print(_panel(Group(table, Text(caption, style="subtitle")), "Ideas"))
