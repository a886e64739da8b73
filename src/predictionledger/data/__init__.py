from __future__ import annotations

from predictionledger.data.snapshots import (
    AnalystDocumentSource,
    ReportDirectory,
    SnapshotProvider,
    position_map,
    positions_from_report,
)

__all__ = [
    "AnalystDocumentSource",
    "ReportDirectory",
    "SnapshotProvider",
    "position_map",
    "positions_from_report",
]
