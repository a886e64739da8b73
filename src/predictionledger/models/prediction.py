from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

SCENARIO_SYMBOL = "__SCENARIO__"


def round4(value: float | None) -> float | None:
    """Round to 4 decimals, passing None (and non-finite values) through as None."""
    if value is None or value != value or value in (float("inf"), float("-inf")):
        return None
    return round(value, 4)


class Action(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    TRIM = "TRIM"
    SCENARIO = "SCENARIO"
    UNKNOWN = "UNKNOWN"


class Horizon(StrEnum):
    DAY = "24h"
    WEEK = "1w"
    TWO_WEEKS = "2w"
    MONTH = "1m"

    @property
    def days(self) -> int:
        return HORIZON_DAYS[self]


HORIZON_DAYS: dict[Horizon, int] = {
    Horizon.DAY: 1,
    Horizon.WEEK: 7,
    Horizon.TWO_WEEKS: 14,
    Horizon.MONTH: 30,
}


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


def expected_direction_for(action: Action, scenario_label: str | None = None) -> Direction | None:
    """Direction a prediction commits to, derived only from its action tag."""
    if action == Action.BUY:
        return Direction.UP
    if action in (Action.SELL, Action.TRIM):
        return Direction.DOWN
    if action == Action.HOLD:
        return Direction.FLAT
    if action == Action.SCENARIO:
        label = (scenario_label or "").lower()
        if "bull" in label:
            return Direction.UP
        if "bear" in label:
            return Direction.DOWN
        return Direction.FLAT
    return None


@dataclass(frozen=True)
class Outcome:
    resolved_date: date
    actual_direction: Direction
    pnl_pct_change: float
    mv_change: float
    correct: bool
    stop_hit: bool = False
    position_entered: bool = False
    position_exited: bool = False

    def to_dict(self) -> dict:
        return {
            "resolvedDate": self.resolved_date.isoformat(),
            "actualDirection": str(self.actual_direction),
            "pnlPctChange": round4(self.pnl_pct_change),
            "mvChange": round4(self.mv_change),
            "correct": self.correct,
            "stopHit": self.stop_hit,
            "positionEntered": self.position_entered,
            "positionExited": self.position_exited,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Outcome:
        return cls(
            resolved_date=date.fromisoformat(data["resolvedDate"]),
            actual_direction=Direction(data["actualDirection"]),
            pnl_pct_change=float(data.get("pnlPctChange") or 0.0),
            mv_change=float(data.get("mvChange") or 0.0),
            correct=bool(data["correct"]),
            stop_hit=bool(data.get("stopHit", False)),
            position_entered=bool(data.get("positionEntered", False)),
            position_exited=bool(data.get("positionExited", False)),
        )


@dataclass(frozen=True)
class Prediction:
    """A single forward-looking call, tagged by its action.

    ``resolved`` is derived from ``outcome`` so the two can never disagree.
    Resolution produces a new instance via ``with_outcome``; records are
    never mutated in place.
    """

    issue_date: date
    symbol: str
    wallet: str
    action: Action
    horizon: Horizon = Horizon.DAY
    confidence: float | None = None
    trigger_level: float | None = None
    stop_level: float | None = None
    size_change_pct: float | None = None
    scenario_label: str | None = None
    outcome: Outcome | None = None

    @property
    def resolved(self) -> bool:
        return self.outcome is not None

    @property
    def expected_direction(self) -> Direction | None:
        return expected_direction_for(self.action, self.scenario_label)

    @property
    def is_scenario(self) -> bool:
        return self.action == Action.SCENARIO

    @property
    def target_date(self) -> date:
        return self.issue_date + timedelta(days=self.horizon.days)

    @property
    def key(self) -> tuple[str, str, str, str, str]:
        """Identity key: (issue date, symbol, horizon, wallet, scenario label)."""
        return (
            self.issue_date.isoformat(),
            self.symbol,
            str(self.horizon),
            self.wallet,
            self.scenario_label or "",
        )

    def with_outcome(self, outcome: Outcome) -> Prediction:
        if self.resolved:
            raise ValueError(f"Prediction {self.key} is already resolved")
        return dataclasses.replace(self, outcome=outcome)

    def to_dict(self) -> dict:
        direction = self.expected_direction
        data = {
            "date": self.issue_date.isoformat(),
            "symbol": self.symbol,
            "wallet": self.wallet,
            "action": str(self.action),
            "confidence": round4(self.confidence),
            "horizon": str(self.horizon),
            "expectedDirection": str(direction) if direction else None,
            "triggerLevel": self.trigger_level,
            "stopLevel": self.stop_level,
            "sizeChangePct": round4(self.size_change_pct),
        }
        if self.scenario_label is not None:
            data["scenarioLabel"] = self.scenario_label
        data["resolved"] = self.resolved
        data["outcome"] = self.outcome.to_dict() if self.outcome else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Prediction:
        outcome_data = data.get("outcome")
        if bool(data.get("resolved")) != bool(outcome_data):
            raise ValueError(f"Prediction resolved flag disagrees with outcome: {data}")
        return cls(
            issue_date=date.fromisoformat(data["date"]),
            symbol=str(data["symbol"]),
            wallet=str(data["wallet"]),
            action=Action(data["action"]),
            horizon=Horizon(data.get("horizon") or Horizon.DAY),
            confidence=_opt_float(data.get("confidence")),
            trigger_level=_opt_float(data.get("triggerLevel")),
            stop_level=_opt_float(data.get("stopLevel")),
            size_change_pct=_opt_float(data.get("sizeChangePct")),
            scenario_label=data.get("scenarioLabel"),
            outcome=Outcome.from_dict(outcome_data) if outcome_data else None,
        )


def _opt_float(value) -> float | None:
    return None if value is None else float(value)
