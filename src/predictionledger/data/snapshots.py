"""Factual snapshots and analyst documents, read from a daily reports directory.

Layout of a reports directory:
  - ``YYYY-MM-DD.json``     factual daily report, positions under ``combined.positions``
  - ``YYYY-MM-DD.ai.json``  analyst output for that date (no enforced schema)

A missing or unreadable file is "not found", never an error.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Protocol

from predictionledger.models.position import Position

logger = logging.getLogger(__name__)

REPORT_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})\.json$")
ANALYST_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})\.ai\.json$")


class SnapshotProvider(Protocol):
    def available_dates(self) -> list[date]: ...

    def load_positions(self, snapshot_date: date) -> list[Position] | None: ...


class AnalystDocumentSource(Protocol):
    def document_dates(self) -> list[date]: ...

    def load_document(self, issue_date: date) -> Any | None: ...


def positions_from_report(report: Any) -> list[Position] | None:
    """Extract positions from a factual report; None if it has no position list."""
    if not isinstance(report, dict):
        return None
    combined = report.get("combined")
    if not isinstance(combined, dict):
        return None
    rows = combined.get("positions")
    if not isinstance(rows, list):
        return None
    return [Position.from_dict(row) for row in rows if isinstance(row, dict) and row.get("symbol")]


def position_map(positions: list[Position]) -> dict[str, Position]:
    return {p.symbol: p for p in positions}


class ReportDirectory:
    """File-backed snapshot provider and analyst document source."""

    def __init__(self, reports_dir: Path | str) -> None:
        self._dir = Path(reports_dir)

    @property
    def path(self) -> Path:
        return self._dir

    def available_dates(self) -> list[date]:
        return self._list_dates(REPORT_PATTERN)

    def document_dates(self) -> list[date]:
        return self._list_dates(ANALYST_PATTERN)

    def load_positions(self, snapshot_date: date) -> list[Position] | None:
        report = self._load_json(self._dir / f"{snapshot_date.isoformat()}.json")
        if report is None:
            return None
        positions = positions_from_report(report)
        if positions is None:
            logger.warning("Report %s has no combined.positions list", snapshot_date)
        return positions

    def load_document(self, issue_date: date) -> Any | None:
        return self._load_json(self._dir / f"{issue_date.isoformat()}.ai.json")

    def _list_dates(self, pattern: re.Pattern[str]) -> list[date]:
        try:
            names = [entry.name for entry in self._dir.iterdir()]
        except OSError:
            logger.debug("Reports directory %s not readable", self._dir)
            return []

        dates: set[date] = set()
        for name in names:
            match = pattern.match(name)
            if not match:
                continue
            try:
                dates.add(date.fromisoformat(match.group(1)))
            except ValueError:
                logger.debug("Ignoring file with invalid date: %s", name)
        return sorted(dates)

    @staticmethod
    def _load_json(path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, RecursionError, ValueError) as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)
            return None
