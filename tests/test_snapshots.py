from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from predictionledger.data.snapshots import ReportDirectory, position_map, positions_from_report


class TestPositionsFromReport:
    def test_reads_combined_positions(self) -> None:
        report = {"combined": {"positions": [
            {"symbol": "aapl", "marketValue": 3600, "pnlPct": 0.1, "quantity": 24},
            {"symbol": "BTC", "marketValue": 5000},
        ]}}
        positions = positions_from_report(report)
        assert [p.symbol for p in positions] == ["AAPL", "BTC"]
        assert positions[0].quantity == 24.0

    def test_rows_without_symbol_dropped(self) -> None:
        report = {"combined": {"positions": [{"marketValue": 10}, "junk", {"symbol": "X"}]}}
        assert [p.symbol for p in positions_from_report(report)] == ["X"]

    def test_missing_section_is_none(self) -> None:
        assert positions_from_report({"combined": {}}) is None
        assert positions_from_report({"positions": []}) is None
        assert positions_from_report([]) is None

    def test_empty_list_is_not_none(self) -> None:
        assert positions_from_report({"combined": {"positions": []}}) == []

    def test_position_map(self) -> None:
        positions = positions_from_report({"combined": {"positions": [{"symbol": "A"}, {"symbol": "B"}]}})
        assert set(position_map(positions)) == {"A", "B"}


class TestReportDirectory:
    def test_lists_dates_by_file_kind(self, tmp_path: Path) -> None:
        for name in (
            "2026-02-15.json", "2026-02-14.json", "2026-02-14.ai.json",
            "ai-learning.json", "2026-13-45.json", "notes.txt",
        ):
            (tmp_path / name).write_text("{}")

        reports = ReportDirectory(tmp_path)
        assert reports.available_dates() == [date(2026, 2, 14), date(2026, 2, 15)]
        assert reports.document_dates() == [date(2026, 2, 14)]

    def test_missing_directory(self, tmp_path: Path) -> None:
        reports = ReportDirectory(tmp_path / "nope")
        assert reports.available_dates() == []
        assert reports.document_dates() == []
        assert reports.load_positions(date(2026, 2, 14)) is None

    def test_load_positions(self, tmp_path: Path) -> None:
        (tmp_path / "2026-02-14.json").write_text(json.dumps(
            {"combined": {"positions": [{"symbol": "AAPL", "marketValue": 100}]}}
        ))
        positions = ReportDirectory(tmp_path).load_positions(date(2026, 2, 14))
        assert [(p.symbol, p.market_value) for p in positions] == [("AAPL", 100.0)]

    def test_unreadable_files_are_not_found(self, tmp_path: Path) -> None:
        (tmp_path / "2026-02-14.json").write_text("{oops")
        (tmp_path / "2026-02-14.ai.json").write_text("")
        reports = ReportDirectory(tmp_path)
        assert reports.load_positions(date(2026, 2, 14)) is None
        assert reports.load_document(date(2026, 2, 14)) is None

    def test_load_document_any_shape(self, tmp_path: Path) -> None:
        (tmp_path / "2026-02-14.ai.json").write_text(json.dumps(["free", "form"]))
        assert ReportDirectory(tmp_path).load_document(date(2026, 2, 14)) == ["free", "form"]

    def test_out_of_range_numbers(self, tmp_path: Path) -> None:
        (tmp_path / "2026-02-14.json").write_text(json.dumps(
            {"combined": {"positions": [{"symbol": "AAPL", "marketValue": 10**400, "quantity": 3}]}}
        ))
        [position] = ReportDirectory(tmp_path).load_positions(date(2026, 2, 14))
        assert position.market_value == 0.0
        assert position.quantity == 3.0

    def test_integer_literal_past_conversion_limit(self, tmp_path: Path) -> None:
        literal = "9" * 5000
        (tmp_path / "2026-02-14.ai.json").write_text(f'{{"actions": [{{"symbol": "AAPL", "confidence": {literal}}}]}}')
        (tmp_path / "2026-02-14.json").write_text(f'{{"combined": {{"positions": [], "total": {literal}}}}}')
        reports = ReportDirectory(tmp_path)
        assert reports.load_document(date(2026, 2, 14)) is None
        assert reports.load_positions(date(2026, 2, 14)) is None
