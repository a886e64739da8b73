"""Diagnostics and self-improvement directives derived from accuracy stats.

Pure functions: the same accuracy snapshot and prediction list always
produce the same insights and recommendations, in the same order.
"""

from __future__ import annotations

from predictionledger.models.ledger import AccuracySnapshot, Recommendation
from predictionledger.models.prediction import SCENARIO_SYMBOL, Action, Direction, Prediction

MIN_RESOLVED_FOR_INSIGHTS = 3
MIN_RESOLVED_FOR_RECOMMENDATIONS = 5

STRONG_ACCURACY = 0.7
MODERATE_ACCURACY = 0.5
LOW_ACCURACY = 0.4
HIGH_ACCURACY = 0.75

MAX_AVERAGE_GAP = 0.15
BAND_CONFIDENCE_MARGIN = 0.1
MAX_BAND_GAP = 0.2

INSUFFICIENT_DATA = (
    "Not enough resolved predictions yet to generate meaningful insights. "
    "Keep running daily analyses."
)


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def _hit_rate(predictions: list[Prediction]) -> float:
    return sum(1 for p in predictions if p.outcome.correct) / len(predictions)


def generate_insights(accuracy: AccuracySnapshot, predictions: list[Prediction]) -> list[str]:
    resolved = [p for p in predictions if p.resolved]
    if len(resolved) < MIN_RESOLVED_FOR_INSIGHTS:
        return [INSUFFICIENT_DATA]

    insights: list[str] = []

    # Overall
    if accuracy.overall is not None:
        if accuracy.overall >= STRONG_ACCURACY:
            insights.append(
                f"Overall accuracy is strong at {_pct(accuracy.overall)}. "
                "Maintain current analytical approach."
            )
        elif accuracy.overall >= MODERATE_ACCURACY:
            insights.append(
                f"Overall accuracy is moderate at {_pct(accuracy.overall)}. "
                "Look for patterns in incorrect predictions to improve."
            )
        else:
            insights.append(
                f"Overall accuracy is below 50% at {_pct(accuracy.overall)}. "
                "Consider inverting or re-evaluating the analytical framework."
            )

    # Per action
    for action, stats in accuracy.by_action.items():
        if action == Action.SCENARIO or stats.total < 2:
            continue
        if stats.accuracy < LOW_ACCURACY:
            insights.append(
                f"{action} recommendations have low accuracy ({_pct(stats.accuracy)} over "
                f"{stats.total} calls). Consider raising the conviction threshold before "
                f"issuing {action} calls."
            )
        elif stats.accuracy >= HIGH_ACCURACY:
            insights.append(
                f"{action} recommendations are highly reliable ({_pct(stats.accuracy)} over "
                f"{stats.total} calls). Lean into this strength."
            )

    # Per symbol
    symbols = [(s, st) for s, st in accuracy.by_symbol.items() if s != SCENARIO_SYMBOL and st.total >= 3]
    poor = [f"{s} ({_pct(st.accuracy)})" for s, st in symbols if st.accuracy < LOW_ACCURACY]
    strong = [f"{s} ({_pct(st.accuracy)})" for s, st in symbols if st.accuracy >= HIGH_ACCURACY]
    if poor:
        insights.append(
            f"Consistently poor accuracy on: {', '.join(poor)}. These symbols may need a "
            "different analytical lens or more conservative sizing."
        )
    if strong:
        insights.append(
            f"Strong track record on: {', '.join(strong)}. Higher conviction warranted on these symbols."
        )

    # Calibration: a single band is enough to flag a gap, no minimum band count
    average_gap = accuracy.average_gap
    if average_gap is not None and average_gap > MAX_AVERAGE_GAP:
        insights.append(
            f"Confidence calibration is off by {average_gap * 100:.0f}pp on average. "
            "Predicted probabilities don't match actual hit rates."
        )
    if any(
        b.predicted_prob > b.actual_rate + BAND_CONFIDENCE_MARGIN and b.sample_size >= 3
        for b in accuracy.calibration
    ):
        insights.append(
            "Tendency toward overconfidence detected. When stating high-confidence "
            "predictions, actual accuracy is lower than claimed."
        )
    if any(
        b.actual_rate > b.predicted_prob + BAND_CONFIDENCE_MARGIN and b.sample_size >= 3
        for b in accuracy.calibration
    ):
        insights.append(
            "Tendency toward under-confidence detected. Some cautious predictions actually "
            "perform better than expected. Consider sizing up on these."
        )

    # Directional bias
    ups = [p for p in resolved if p.expected_direction == Direction.UP]
    downs = [p for p in resolved if p.expected_direction == Direction.DOWN]
    if ups and downs:
        up_rate = _hit_rate(ups)
        down_rate = _hit_rate(downs)
        if up_rate < LOW_ACCURACY and down_rate >= MODERATE_ACCURACY:
            insights.append(
                "Bullish bias detected: bearish calls are more accurate than bullish ones. "
                "Apply extra skepticism to BUY recommendations."
            )
        if down_rate < LOW_ACCURACY and up_rate >= MODERATE_ACCURACY:
            insights.append(
                "Bearish bias detected: bullish calls are more accurate than bearish ones. "
                "Apply extra skepticism to SELL/TRIM recommendations."
            )

    # Per wallet
    for wallet, stats in accuracy.by_wallet.items():
        if stats.total >= 3 and stats.accuracy < LOW_ACCURACY:
            insights.append(
                f'Wallet "{wallet}" analysis underperforms ({_pct(stats.accuracy)} accuracy). '
                "Reevaluate the analytical approach for this market/asset class."
            )

    return insights


def generate_recommendations(accuracy: AccuracySnapshot) -> list[Recommendation]:
    if accuracy.resolved_count < MIN_RESOLVED_FOR_RECOMMENDATIONS:
        return [Recommendation(
            priority="high",
            category="data",
            text=(
                "Continue running daily AI analysis to build up a meaningful prediction history. "
                "At least 5-10 resolved predictions needed for reliable insights."
            ),
        )]

    recs: list[Recommendation] = []

    if any(b.gap > MAX_BAND_GAP and b.sample_size >= 3 for b in accuracy.calibration):
        recs.append(Recommendation(
            priority="high",
            category="calibration",
            text=(
                "Adjust confidence levels in predictions. Large gap between stated confidence "
                "and actual accuracy detected. Use past accuracy rates as priors."
            ),
        ))

    for action, stats in accuracy.by_action.items():
        if action == Action.SCENARIO or stats.total < 3:
            continue
        if stats.accuracy < LOW_ACCURACY:
            recs.append(Recommendation(
                priority="high",
                category="action_type",
                text=(
                    f"Reduce {action} frequency or raise conviction threshold. "
                    f"Current accuracy: {_pct(stats.accuracy)} over {stats.total} calls."
                ),
            ))

    if accuracy.overall is not None and accuracy.overall < MODERATE_ACCURACY:
        recs.append(Recommendation(
            priority="critical",
            category="strategy",
            text=(
                "Overall prediction accuracy below 50%. Consider: (1) narrowing prediction scope "
                "to highest-conviction calls only, (2) increasing use of HOLD over active "
                "BUY/SELL, (3) using wider stop levels."
            ),
        ))

    return recs
