"""Outcome resolution: settles predictions against later factual snapshots.

A prediction is resolved against the earliest snapshot on or after its
target date (issue date + horizon) that is not later than the current run
date. Until such a snapshot exists the prediction stays open and is retried
on the next run.
"""

from __future__ import annotations

import logging
from datetime import date

from predictionledger.data.snapshots import SnapshotProvider, position_map
from predictionledger.models.position import Position
from predictionledger.models.prediction import (
    Action,
    Direction,
    Outcome,
    Prediction,
    round4,
)

logger = logging.getLogger(__name__)

# Moves within +/-0.5pp are noise
DEAD_ZONE = 0.005


def classify_move(change: float) -> Direction:
    if change > DEAD_ZONE:
        return Direction.UP
    if change < -DEAD_ZONE:
        return Direction.DOWN
    return Direction.FLAT


def is_correct(expected: Direction | None, actual: Direction, exited: bool) -> bool:
    """Correctness of a position-level call.

    A full exit confirms a down call whether it was a stop-out or a
    take-profit; HOLD is right as long as the position did not fall.
    """
    if expected == Direction.UP:
        return actual == Direction.UP
    if expected == Direction.DOWN:
        return actual == Direction.DOWN or exited
    if expected == Direction.FLAT:
        return actual != Direction.DOWN
    return False


def _stop_hit(prediction: Prediction, after: Position | None) -> bool:
    if prediction.stop_level is None or after is None:
        return False
    price = after.implied_price
    if price is None:
        return False
    expected = prediction.expected_direction
    if expected == Direction.UP:
        return price < prediction.stop_level
    if expected == Direction.DOWN:
        return price > prediction.stop_level
    return False


def resolve_prediction(
    prediction: Prediction,
    before: dict[str, Position],
    after: dict[str, Position],
    resolved_date: date,
) -> Prediction:
    """Resolve one prediction from before/after position maps.

    Returns the same object when it is already resolved or cannot be
    resolved (symbol absent from both snapshots).
    """
    if prediction.resolved:
        return prediction
    if prediction.action == Action.SCENARIO:
        return resolve_scenario(prediction, before, after, resolved_date)

    pos_before = before.get(prediction.symbol)
    pos_after = after.get(prediction.symbol)
    if pos_before is None and pos_after is None:
        return prediction

    pnl_pct_change = round4(
        (pos_after.pnl_pct if pos_after else 0.0) - (pos_before.pnl_pct if pos_before else 0.0)
    ) or 0.0
    mv_change = round4(
        (pos_after.market_value if pos_after else 0.0) - (pos_before.market_value if pos_before else 0.0)
    ) or 0.0
    actual = classify_move(pnl_pct_change)
    exited = pos_before is not None and pos_after is None

    return prediction.with_outcome(Outcome(
        resolved_date=resolved_date,
        actual_direction=actual,
        pnl_pct_change=pnl_pct_change,
        mv_change=mv_change,
        correct=is_correct(prediction.expected_direction, actual, pos_after is None),
        stop_hit=_stop_hit(prediction, pos_after),
        position_entered=pos_before is None and pos_after is not None,
        position_exited=exited,
    ))


def resolve_scenario(
    prediction: Prediction,
    before: dict[str, Position],
    after: dict[str, Position],
    resolved_date: date,
) -> Prediction:
    """Scenarios are judged on the whole portfolio's market value, exact match only."""
    if prediction.resolved:
        return prediction

    mv_before = sum(p.market_value for p in before.values())
    mv_after = sum(p.market_value for p in after.values())
    mv_change = mv_after - mv_before
    change_pct = round4(mv_change / mv_before) if mv_before > 0 else 0.0
    actual = classify_move(change_pct or 0.0)

    return prediction.with_outcome(Outcome(
        resolved_date=resolved_date,
        actual_direction=actual,
        pnl_pct_change=change_pct or 0.0,
        mv_change=round4(mv_change) or 0.0,
        correct=prediction.expected_direction == actual,
    ))


class OutcomeResolver:
    """Resolves open predictions against a snapshot provider for one run."""

    def __init__(self, snapshots: SnapshotProvider) -> None:
        self._snapshots = snapshots
        self._cache: dict[date, dict[str, Position] | None] = {}
        self._dates: list[date] | None = None

    def _available_dates(self) -> list[date]:
        if self._dates is None:
            self._dates = sorted(self._snapshots.available_dates())
        return self._dates

    def _positions(self, snapshot_date: date) -> dict[str, Position] | None:
        if snapshot_date not in self._cache:
            positions = self._snapshots.load_positions(snapshot_date)
            self._cache[snapshot_date] = position_map(positions) if positions is not None else None
        return self._cache[snapshot_date]

    def resolution_date(self, prediction: Prediction, current_date: date) -> date | None:
        """Earliest snapshot date on/after the target date, if not past ``current_date``."""
        target = prediction.target_date
        candidate = next((d for d in self._available_dates() if d >= target), None)
        if candidate is None or candidate > current_date:
            return None
        return candidate

    def resolve(self, prediction: Prediction, current_date: date) -> Prediction:
        if prediction.resolved:
            return prediction

        resolve_date = self.resolution_date(prediction, current_date)
        if resolve_date is None:
            logger.debug("No snapshot yet for %s (target %s)", prediction.key, prediction.target_date)
            return prediction

        before = self._positions(prediction.issue_date)
        after = self._positions(resolve_date)
        if before is None or after is None:
            logger.debug(
                "Deferring %s: snapshot missing for %s or %s",
                prediction.key, prediction.issue_date, resolve_date,
            )
            return prediction

        return resolve_prediction(prediction, before, after, resolve_date)

    def resolve_all(self, predictions: list[Prediction], current_date: date) -> list[Prediction]:
        """Resolve every open prediction; resolved ones pass through untouched."""
        result = [self.resolve(p, current_date) for p in predictions]
        newly = sum(1 for old, new in zip(predictions, result) if old is not new)
        logger.info(
            "Resolved %d predictions (%d still open)",
            newly, sum(1 for p in result if not p.resolved),
        )
        return result
