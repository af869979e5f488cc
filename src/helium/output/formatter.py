"""Render command results as a table, JSON, YAML or CSV."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from typing import Any

import yaml
from rich.console import Console
from rich.errors import MarkupError
from rich.text import Text

from helium.output.tables import kv_table, make_table

console = Console()

FORMATS = ("table", "json", "yaml", "csv")


def _plain(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def output_json(data: Any) -> None:
    console.print_json(json.dumps(_plain(data), indent=2, default=str))


def output_yaml(data: Any) -> None:
    console.print(
        yaml.safe_dump(_plain(data), default_flow_style=False, sort_keys=False), end="",
    )


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    try:
        return Text.from_markup(str(value)).plain
    except MarkupError:
        return str(value)


def output_csv(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(columns)
    writer.writerows([[_cell_text(v) for v in row] for row in rows])
    # CSV goes out unstyled so it stays machine-readable
    console.print(buf.getvalue(), end="", markup=False, highlight=False)


def output(
    data: Any,
    fmt: str = "table",
    *,
    columns: Sequence[str] | None = None,
    rows: Sequence[Sequence[Any]] | None = None,
    title: str | None = None,
    kv: bool = False,
) -> None:
    """Print *data* in *fmt*.

    ``table`` and ``csv`` use *columns*/*rows* when given; a dict is shown
    as a key/value table. ``csv`` without rows falls back to JSON.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown output format '{fmt}'. Choose from: {', '.join(FORMATS)}")
    if fmt == "json":
        output_json(data)
    elif fmt == "yaml":
        output_yaml(data)
    elif fmt == "csv":
        if columns and rows is not None:
            output_csv(columns, rows)
        else:
            output_json(data)
    elif columns and rows is not None and not kv:
        console.print(make_table(title, columns, rows))
    elif isinstance(_plain(data), dict):
        console.print(kv_table(_plain(data), title=title))
    else:
        console.print(data)
