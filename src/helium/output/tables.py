"""Rich table helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from rich.table import Table

LIFECYCLE_STYLES = {
    "active": "green",
    "expiring-soon": "yellow",
    "renew": "cyan",
    "grace-period": "yellow",
    "suspend": "red",
    "suspended": "red",
    "delete": "bold red",
    "untracked": "dim",
}


def format_epoch_ms(ts: int | None) -> str:
    """Epoch milliseconds as local ``YYYY-MM-DD HH:MM``."""
    if ts is None:
        return ""
    try:
        dt = datetime.fromtimestamp(ts / 1000, tz=timezone.utc).astimezone()
    except (ValueError, OSError, OverflowError):
        return str(ts)
    return dt.strftime("%Y-%m-%d %H:%M")


def styled_state(state: str) -> str:
    style = LIFECYCLE_STYLES.get(state)
    return f"[{style}]{state}[/]" if style else state


def yes_no(value: bool | None) -> str:
    return "[green]yes[/]" if value else "[dim]no[/]"


def make_table(
    title: str | None,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    show_lines: bool = False,
) -> Table:
    table = Table(title=title, show_lines=show_lines)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*("" if cell is None else str(cell) for cell in row))
    return table


def kv_table(data: dict[str, Any], *, title: str | None = None) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        table.add_row(str(key), "" if value is None else str(value))
    return table
