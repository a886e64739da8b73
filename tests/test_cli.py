from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from predictionledger.cli import main


class TestCLIParsing:
    def test_no_command_fails(self) -> None:
        with pytest.raises(SystemExit):
            main([])

    def test_help_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_update_command_parses(self) -> None:
        with patch("predictionledger.cli.cmd_update") as mock_cmd:
            main(["update"])
            mock_cmd.assert_called_once()
            args = mock_cmd.call_args[0][0]
            assert args.date is None

    def test_update_with_date(self) -> None:
        with patch("predictionledger.cli.cmd_update") as mock_cmd:
            main(["update", "--date", "2026-02-15"])
            args = mock_cmd.call_args[0][0]
            assert args.date == date(2026, 2, 15)

    def test_update_rejects_bad_date(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["update", "--date", "15/02/2026"])
        assert exc_info.value.code == 2

    def test_context_command(self) -> None:
        with patch("predictionledger.cli.cmd_context") as mock_cmd:
            main(["context"])
            mock_cmd.assert_called_once()

    def test_status_command(self) -> None:
        with patch("predictionledger.cli.cmd_status") as mock_cmd:
            main(["status"])
            mock_cmd.assert_called_once()

    def test_verbose_flag(self) -> None:
        with patch("predictionledger.cli.cmd_status") as mock_cmd:
            main(["-v", "status"])
            args = mock_cmd.call_args[0][0]
            assert args.verbose is True

    def test_reports_dir_flag(self) -> None:
        with patch("predictionledger.cli.cmd_status") as mock_cmd:
            main(["--reports-dir", "/tmp/reports", "status"])
            args = mock_cmd.call_args[0][0]
            assert args.reports_dir == "/tmp/reports"

    def test_runtime_error_exits_nonzero(self) -> None:
        with patch("predictionledger.cli.cmd_status", side_effect=RuntimeError("corrupt ledger")):
            with pytest.raises(SystemExit) as exc_info:
                main(["status"])
        assert exc_info.value.code == 1


class TestCommands:
    def test_update_then_status(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (tmp_path / "2026-02-14.json").write_text(json.dumps(
            {"combined": {"positions": [{"symbol": "AAPL", "marketValue": 100, "pnlPct": 0.0}]}}
        ))
        (tmp_path / "2026-02-14.ai.json").write_text(json.dumps(
            {"actions": [{"symbol": "AAPL", "action": "BUY"}]}
        ))

        main(["--reports-dir", str(tmp_path), "update", "--date", "2026-02-14"])
        out = capsys.readouterr().out
        assert "AI Learning: Predictions: 1 | Resolved: 0 | Insights: 1" in out
        assert (tmp_path / "ai-learning.json").exists()

        main(["--reports-dir", str(tmp_path), "status"])
        assert "Predictions: 1" in capsys.readouterr().out

    def test_context_without_ledger(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--reports-dir", str(tmp_path), "context"])
        assert "No prior AI predictions have been scored yet." in capsys.readouterr().out

    def test_corrupt_ledger_exits_nonzero(self, tmp_path: Path) -> None:
        (tmp_path / "ai-learning.json").write_text("not json")
        with pytest.raises(SystemExit) as exc_info:
            main(["--reports-dir", str(tmp_path), "update", "--date", "2026-02-14"])
        assert exc_info.value.code == 1
        assert (tmp_path / "ai-learning.json").read_text() == "not json"
