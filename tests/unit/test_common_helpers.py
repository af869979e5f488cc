"""Tests for shared command helpers."""

from __future__ import annotations

from rich.console import Console

from helium.commands._common import extract_items, extract_pagination, print_report
from helium.notify.events import NotificationReport


class TestExtractItems:
    def test_unwraps_attributes(self, list_payload, server_payload):
        data = list_payload([server_payload(1), server_payload(2, name="mc-2")])
        items = extract_items(data)
        assert [i["id"] for i in items] == [1, 2]
        assert items[1]["name"] == "mc-2"

    def test_list_passthrough(self):
        data = [{"attributes": {"id": 1}}, {"id": 2}]
        assert extract_items(data) == [{"id": 1}, {"id": 2}]

    def test_dict_without_data(self):
        assert extract_items({"object": "list"}) == []

    def test_none_returns_empty(self):
        assert extract_items(None) == []


class TestExtractPagination:
    def test_with_meta(self, list_payload):
        meta = extract_pagination(list_payload([], page=2, total_pages=5))
        assert meta["current_page"] == 2
        assert meta["total_pages"] == 5

    def test_without_meta(self):
        assert extract_pagination({"data": []}) == {}

    def test_non_dict(self):
        assert extract_pagination([]) == {}


class TestPrintReport:
    def _render(self, report: NotificationReport) -> str:
        console = Console(record=True, width=120)
        print_report(console, report)
        return console.export_text()

    def test_nothing_matched_prints_nothing(self):
        assert self._render(NotificationReport(event_type="server.created")) == ""

    def test_all_delivered(self):
        report = NotificationReport(event_type="server.created", matched=2, delivered=[1, 2])
        assert "Notified 2 webhook(s)" in self._render(report)

    def test_partial_failure(self):
        report = NotificationReport(event_type="server.created", matched=2, delivered=[1], failed=[2])
        assert "Notified 1/2 webhooks (1 failed)" in self._render(report)

    def test_load_error(self):
        report = NotificationReport(event_type="server.created", error="db locked")
        assert "Notification skipped: db locked" in self._render(report)
