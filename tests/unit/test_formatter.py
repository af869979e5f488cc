"""Tests for output formatting."""

from __future__ import annotations

import json
from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from helium.models.common import RateLimitInfo
from helium.output.formatter import output, output_csv
from helium.output.tables import format_epoch_ms, kv_table, make_table, styled_state


def _capture():
    buf = StringIO()
    console = Console(file=buf, force_terminal=False, width=200)
    return buf, patch("helium.output.formatter.console", console)


class TestOutputFormats:
    def test_json_model(self):
        buf, patched = _capture()
        with patched:
            output(RateLimitInfo(remaining=5), "json")
        assert json.loads(buf.getvalue()) == {"remaining": 5, "reset_at": None}

    def test_json_list_of_models(self):
        buf, patched = _capture()
        with patched:
            output([RateLimitInfo(remaining=1), RateLimitInfo(remaining=2)], "json")
        assert [d["remaining"] for d in json.loads(buf.getvalue())] == [1, 2]

    def test_yaml(self):
        buf, patched = _capture()
        with patched:
            output({"server": "mc", "coins": 5}, "yaml")
        assert "server: mc" in buf.getvalue()

    def test_csv_strips_markup(self):
        buf, patched = _capture()
        with patched:
            output_csv(["Name", "State"], [["a", "[green]active[/]"], ["b", None]])
        lines = buf.getvalue().splitlines()
        assert lines == ["Name,State", "a,active", "b,"]

    def test_csv_without_rows_falls_back_to_json(self):
        buf, patched = _capture()
        with patched:
            output({"k": "v"}, "csv")
        assert json.loads(buf.getvalue()) == {"k": "v"}

    def test_table_columns(self):
        buf, patched = _capture()
        with patched:
            output([{}], "table", columns=["ID", "Name"], rows=[[1, "mc"]], title="Servers")
        out = buf.getvalue()
        assert "Servers" in out
        assert "mc" in out

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown output format"):
            output({}, "xml")


class TestTables:
    def test_kv_table_joins_lists(self):
        buf = StringIO()
        Console(file=buf, width=120).print(kv_table({"events": ["a", "b"], "none": None}))
        assert "a, b" in buf.getvalue()

    def test_make_table(self):
        buf = StringIO()
        Console(file=buf, width=80).print(make_table("T", ["A"], [[None], [3]]))
        assert "3" in buf.getvalue()

    def test_format_epoch_ms(self):
        assert format_epoch_ms(None) == ""
        assert format_epoch_ms(1_700_000_000_000).startswith("2023-11-1")

    def test_styled_state(self):
        assert styled_state("delete") == "[bold red]delete[/]"
        assert styled_state("other") == "other"
