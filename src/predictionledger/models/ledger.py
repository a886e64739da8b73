from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from predictionledger.models.prediction import Prediction, round4

LEDGER_VERSION = 1


@dataclass(frozen=True)
class GroupStats:
    total: int
    correct: int

    @property
    def accuracy(self) -> float:
        return round4(self.correct / self.total) if self.total > 0 else 0.0

    def to_dict(self) -> dict:
        return {"total": self.total, "correct": self.correct, "accuracy": self.accuracy}

    @classmethod
    def from_dict(cls, data: dict) -> GroupStats:
        return cls(total=int(data["total"]), correct=int(data["correct"]))


@dataclass(frozen=True)
class CalibrationBand:
    """One 0.1-wide confidence band (e.g. everything that rounds to 0.7)."""

    predicted_prob: float
    sample_size: int
    correct: int

    @property
    def actual_rate(self) -> float:
        return round4(self.correct / self.sample_size) if self.sample_size > 0 else 0.0

    @property
    def gap(self) -> float:
        """Calibration gap: |predicted - actual|."""
        if self.sample_size == 0:
            return 0.0
        return round4(abs(self.predicted_prob - self.correct / self.sample_size))

    def to_dict(self) -> dict:
        return {
            "predictedProb": self.predicted_prob,
            "actualRate": self.actual_rate,
            "sampleSize": self.sample_size,
            "correct": self.correct,
            "gap": self.gap,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CalibrationBand:
        size = int(data["sampleSize"])
        correct = data.get("correct")
        if correct is None:
            correct = round(float(data.get("actualRate") or 0.0) * size)
        return cls(predicted_prob=float(data["predictedProb"]), sample_size=size, correct=int(correct))


@dataclass
class AccuracySnapshot:
    total_predictions: int = 0
    resolved_count: int = 0
    unresolved_count: int = 0
    overall: float | None = None
    by_action: dict[str, GroupStats] = field(default_factory=dict)
    by_horizon: dict[str, GroupStats] = field(default_factory=dict)
    by_wallet: dict[str, GroupStats] = field(default_factory=dict)
    by_symbol: dict[str, GroupStats] = field(default_factory=dict)
    calibration: list[CalibrationBand] = field(default_factory=list)
    brier: float | None = None
    ece: float | None = None

    @property
    def average_gap(self) -> float | None:
        if not self.calibration:
            return None
        return sum(b.gap for b in self.calibration) / len(self.calibration)

    def to_dict(self) -> dict:
        return {
            "totalPredictions": self.total_predictions,
            "resolvedCount": self.resolved_count,
            "unresolvedCount": self.unresolved_count,
            "overall": self.overall,
            "byAction": _groups_to_dict(self.by_action),
            "byHorizon": _groups_to_dict(self.by_horizon),
            "byWallet": _groups_to_dict(self.by_wallet),
            "bySymbol": _groups_to_dict(self.by_symbol),
            "calibration": [b.to_dict() for b in self.calibration],
            "brier": self.brier,
            "ece": self.ece,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AccuracySnapshot:
        return cls(
            total_predictions=int(data.get("totalPredictions", 0)),
            resolved_count=int(data.get("resolvedCount", 0)),
            unresolved_count=int(data.get("unresolvedCount", 0)),
            overall=data.get("overall"),
            by_action=_groups_from_dict(data.get("byAction")),
            by_horizon=_groups_from_dict(data.get("byHorizon")),
            by_wallet=_groups_from_dict(data.get("byWallet")),
            by_symbol=_groups_from_dict(data.get("bySymbol")),
            calibration=[CalibrationBand.from_dict(b) for b in data.get("calibration") or []],
            brier=data.get("brier"),
            ece=data.get("ece"),
        )


@dataclass(frozen=True)
class Recommendation:
    priority: str  # critical, high
    category: str  # data, calibration, action_type, strategy
    text: str

    def to_dict(self) -> dict:
        return {"priority": self.priority, "category": self.category, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> Recommendation:
        return cls(
            priority=str(data["priority"]),
            category=str(data["category"]),
            text=str(data.get("text") or data.get("recommendation") or ""),
        )


@dataclass(frozen=True)
class DailyScore:
    date: date
    total: int
    correct: int

    @property
    def accuracy(self) -> float:
        return round4(self.correct / self.total) if self.total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total": self.total,
            "correct": self.correct,
            "accuracy": self.accuracy,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DailyScore:
        return cls(
            date=date.fromisoformat(data["date"]),
            total=int(data["total"]),
            correct=int(data["correct"]),
        )


@dataclass
class Ledger:
    """Cumulative, versioned self-calibration ledger."""

    version: int = LEDGER_VERSION
    last_updated: date | None = None
    predictions: list[Prediction] = field(default_factory=list)
    accuracy: AccuracySnapshot | None = None
    insights: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    daily_scores: list[DailyScore] = field(default_factory=list)

    @property
    def unresolved(self) -> list[Prediction]:
        return [p for p in self.predictions if not p.resolved]

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "predictions": [p.to_dict() for p in self.predictions],
            "accuracy": self.accuracy.to_dict() if self.accuracy else None,
            "insights": list(self.insights),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "dailyScores": [s.to_dict() for s in self.daily_scores],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Ledger:
        last_updated = data.get("lastUpdated")
        accuracy = data.get("accuracy")
        return cls(
            version=int(data["version"]),
            last_updated=date.fromisoformat(last_updated) if last_updated else None,
            predictions=[Prediction.from_dict(p) for p in data.get("predictions") or []],
            accuracy=AccuracySnapshot.from_dict(accuracy) if accuracy else None,
            insights=[str(i) for i in data.get("insights") or []],
            recommendations=[Recommendation.from_dict(r) for r in data.get("recommendations") or []],
            daily_scores=[DailyScore.from_dict(s) for s in data.get("dailyScores") or []],
        )


def _groups_to_dict(groups: dict[str, GroupStats]) -> dict:
    return {key: stats.to_dict() for key, stats in groups.items()}


def _groups_from_dict(data: dict | None) -> dict[str, GroupStats]:
    return {key: GroupStats.from_dict(value) for key, value in (data or {}).items()}
