from __future__ import annotations

from datetime import date

import pytest

from predictionledger.models import (
    SCENARIO_SYMBOL,
    Action,
    CalibrationBand,
    DailyScore,
    Direction,
    GroupStats,
    Horizon,
    Ledger,
    Outcome,
    Position,
    Prediction,
    Recommendation,
    expected_direction_for,
)
from predictionledger.learning.calibration import compute_accuracy


def _make_prediction(**overrides) -> Prediction:
    defaults = dict(
        issue_date=date(2026, 2, 14),
        symbol="AAPL",
        wallet="US Equities",
        action=Action.BUY,
        horizon=Horizon.DAY,
        confidence=0.7,
        stop_level=140.0,
    )
    defaults.update(overrides)
    return Prediction(**defaults)


def _make_outcome(**overrides) -> Outcome:
    defaults = dict(
        resolved_date=date(2026, 2, 15),
        actual_direction=Direction.UP,
        pnl_pct_change=0.1,
        mv_change=120.0,
        correct=True,
    )
    defaults.update(overrides)
    return Outcome(**defaults)


# ---------------------------------------------------------------------------
# Horizon / direction
# ---------------------------------------------------------------------------


class TestHorizon:
    def test_day_offsets(self) -> None:
        assert Horizon.DAY.days == 1
        assert Horizon.WEEK.days == 7
        assert Horizon.TWO_WEEKS.days == 14
        assert Horizon.MONTH.days == 30

    def test_values(self) -> None:
        assert [h.value for h in Horizon] == ["24h", "1w", "2w", "1m"]


class TestExpectedDirection:
    def test_action_mapping(self) -> None:
        assert expected_direction_for(Action.BUY) == Direction.UP
        assert expected_direction_for(Action.SELL) == Direction.DOWN
        assert expected_direction_for(Action.TRIM) == Direction.DOWN
        assert expected_direction_for(Action.HOLD) == Direction.FLAT
        assert expected_direction_for(Action.UNKNOWN) is None

    def test_scenario_labels(self) -> None:
        assert expected_direction_for(Action.SCENARIO, "bull case") == Direction.UP
        assert expected_direction_for(Action.SCENARIO, "Bear") == Direction.DOWN
        assert expected_direction_for(Action.SCENARIO, "base") == Direction.FLAT
        assert expected_direction_for(Action.SCENARIO, None) == Direction.FLAT


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------


class TestPrediction:
    def test_unresolved_by_default(self) -> None:
        pred = _make_prediction()
        assert pred.resolved is False
        assert pred.outcome is None

    def test_target_date(self) -> None:
        pred = _make_prediction(horizon=Horizon.TWO_WEEKS)
        assert pred.target_date == date(2026, 2, 28)

    def test_key_includes_scenario_label(self) -> None:
        pred = _make_prediction(
            symbol=SCENARIO_SYMBOL, action=Action.SCENARIO, scenario_label="bull",
        )
        assert pred.key == ("2026-02-14", SCENARIO_SYMBOL, "24h", "US Equities", "bull")

    def test_with_outcome_returns_new_record(self) -> None:
        pred = _make_prediction()
        resolved = pred.with_outcome(_make_outcome())
        assert resolved.resolved is True
        assert pred.resolved is False
        assert resolved.key == pred.key

    def test_with_outcome_rejects_resolved(self) -> None:
        resolved = _make_prediction().with_outcome(_make_outcome())
        with pytest.raises(ValueError):
            resolved.with_outcome(_make_outcome(correct=False))

    def test_frozen(self) -> None:
        pred = _make_prediction()
        with pytest.raises(AttributeError):
            pred.symbol = "MSFT"  # type: ignore[misc]

    def test_to_dict_shape(self) -> None:
        data = _make_prediction().to_dict()
        assert data["date"] == "2026-02-14"
        assert data["action"] == "BUY"
        assert data["expectedDirection"] == "up"
        assert data["resolved"] is False
        assert data["outcome"] is None
        assert "scenarioLabel" not in data

    def test_unknown_has_null_direction(self) -> None:
        data = _make_prediction(action=Action.UNKNOWN).to_dict()
        assert data["expectedDirection"] is None

    def test_dict_round_trip_resolved(self) -> None:
        pred = _make_prediction().with_outcome(_make_outcome(stop_hit=True))
        restored = Prediction.from_dict(pred.to_dict())
        assert restored == pred

    def test_from_dict_rejects_flag_mismatch(self) -> None:
        data = _make_prediction().to_dict()
        data["resolved"] = True
        with pytest.raises(ValueError):
            Prediction.from_dict(data)


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------


class TestPosition:
    def test_from_dict_defaults_missing_fields(self) -> None:
        pos = Position.from_dict({"symbol": " aapl ", "marketValue": 3600})
        assert pos.symbol == "AAPL"
        assert pos.market_value == 3600.0
        assert pos.pnl_pct == 0.0
        assert pos.quantity == 0.0

    def test_from_dict_ignores_junk_numbers(self) -> None:
        pos = Position.from_dict({"symbol": "BTC", "pnlPct": "n/a", "quantity": True})
        assert pos.pnl_pct == 0.0
        assert pos.quantity == 0.0

    def test_from_dict_out_of_range_number(self) -> None:
        pos = Position.from_dict({"symbol": "AAPL", "marketValue": 10**400, "quantity": 2})
        assert pos.market_value == 0.0
        assert pos.quantity == 2.0

    def test_implied_price(self) -> None:
        assert Position("AAPL", market_value=3600, quantity=10).implied_price == pytest.approx(360.0)
        assert Position("AAPL", market_value=3600, quantity=0).implied_price is None


# ---------------------------------------------------------------------------
# Ledger aggregates
# ---------------------------------------------------------------------------


class TestLedgerAggregates:
    def test_group_stats_accuracy(self) -> None:
        assert GroupStats(total=3, correct=2).accuracy == pytest.approx(0.6667)
        assert GroupStats(total=0, correct=0).accuracy == 0.0

    def test_calibration_band_fields(self) -> None:
        band = CalibrationBand(predicted_prob=0.7, sample_size=3, correct=2)
        assert band.actual_rate == pytest.approx(0.6667)
        assert band.gap == pytest.approx(0.0333)

    def test_daily_score_dict(self) -> None:
        score = DailyScore(date=date(2026, 2, 14), total=4, correct=3)
        assert score.to_dict() == {"date": "2026-02-14", "total": 4, "correct": 3, "accuracy": 0.75}

    def test_recommendation_accepts_legacy_key(self) -> None:
        rec = Recommendation.from_dict({"priority": "high", "category": "data", "recommendation": "more"})
        assert rec.text == "more"

    def test_empty_ledger(self) -> None:
        data = Ledger().to_dict()
        assert data == {
            "version": 1,
            "lastUpdated": None,
            "predictions": [],
            "accuracy": None,
            "insights": [],
            "recommendations": [],
            "dailyScores": [],
        }

    def test_ledger_round_trip(self) -> None:
        preds = [
            _make_prediction().with_outcome(_make_outcome()),
            _make_prediction(symbol="MSFT", action=Action.HOLD),
        ]
        ledger = Ledger(
            last_updated=date(2026, 2, 15),
            predictions=preds,
            accuracy=compute_accuracy(preds),
            insights=["note"],
            recommendations=[Recommendation("high", "data", "more data")],
            daily_scores=[DailyScore(date(2026, 2, 14), 1, 1)],
        )
        restored = Ledger.from_dict(ledger.to_dict())
        assert restored.to_dict() == ledger.to_dict()
        assert restored.predictions == preds
