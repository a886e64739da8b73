from __future__ import annotations

from predictionledger.models.ledger import (
    LEDGER_VERSION,
    AccuracySnapshot,
    CalibrationBand,
    DailyScore,
    GroupStats,
    Ledger,
    Recommendation,
)
from predictionledger.models.position import Position
from predictionledger.models.prediction import (
    HORIZON_DAYS,
    SCENARIO_SYMBOL,
    Action,
    Direction,
    Horizon,
    Outcome,
    Prediction,
    expected_direction_for,
)

__all__ = [
    # prediction
    "Action",
    "Direction",
    "Horizon",
    "HORIZON_DAYS",
    "SCENARIO_SYMBOL",
    "Outcome",
    "Prediction",
    "expected_direction_for",
    # position
    "Position",
    # ledger
    "LEDGER_VERSION",
    "AccuracySnapshot",
    "CalibrationBand",
    "DailyScore",
    "GroupStats",
    "Ledger",
    "Recommendation",
]
