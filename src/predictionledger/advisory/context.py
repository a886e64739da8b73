"""Read-only views of the ledger for downstream consumers.

  - learning context: plain-language track record fed to the next analysis pass
  - status summary: one line of counts for the run log
"""

from __future__ import annotations

from predictionledger.models.ledger import Ledger
from predictionledger.models.prediction import Action

NO_HISTORY = (
    "No prior AI predictions have been scored yet. "
    "This is the first analysis or no outcomes are available yet."
)

CALIBRATION_WARNING_GAP = 0.1
TREND_DAYS = 5
MIN_TREND_DAYS = 3
BAR_WIDTH = 10


def _accuracy_bar(accuracy: float, width: int = BAR_WIDTH) -> str:
    filled = min(width, max(0, int(accuracy * width + 0.5)))
    return "█" * filled + "░" * (width - filled)


def generate_learning_context(ledger: Ledger | None) -> str:
    if ledger is None or ledger.accuracy is None or ledger.accuracy.resolved_count == 0:
        return NO_HISTORY

    acc = ledger.accuracy
    lines = ["## AI Self-Learning Context (auto-generated from past accuracy)", ""]

    lines.append(
        f"**Track Record:** {acc.resolved_count} predictions resolved "
        f"out of {acc.total_predictions} total."
    )
    if acc.overall is not None:
        lines.append(f"**Overall Accuracy:** {acc.overall * 100:.1f}%")
    lines.append("")

    actions = [(a, s) for a, s in acc.by_action.items() if a != Action.SCENARIO]
    if actions:
        lines.append("**Accuracy by Action Type:**")
        for action, stats in actions:
            lines.append(f"- {action}: {stats.accuracy * 100:.0f}% ({stats.correct}/{stats.total})")
        lines.append("")

    if acc.by_wallet:
        lines.append("**Accuracy by Wallet:**")
        for wallet, stats in acc.by_wallet.items():
            lines.append(f"- {wallet}: {stats.accuracy * 100:.0f}% ({stats.correct}/{stats.total})")
        lines.append("")

    if ledger.insights:
        lines.append("**Key Insights from Past Performance:**")
        lines.extend(f"- {insight}" for insight in ledger.insights)
        lines.append("")

    if ledger.recommendations:
        lines.append("**Self-Improvement Directives:**")
        lines.extend(f"- [{rec.priority.upper()}] {rec.text}" for rec in ledger.recommendations)
        lines.append("")

    average_gap = acc.average_gap
    if average_gap is not None and average_gap > CALIBRATION_WARNING_GAP:
        lines.append(
            f"**CALIBRATION WARNING:** Stated confidence levels are off by {average_gap * 100:.0f}pp "
            "on average. Adjust probabilities to match historical hit rates."
        )
        lines.append("")

    if len(ledger.daily_scores) >= MIN_TREND_DAYS:
        lines.append("**Recent Daily Accuracy Trend:**")
        for score in ledger.daily_scores[-TREND_DAYS:]:
            lines.append(
                f"- {score.date.isoformat()}: {_accuracy_bar(score.accuracy)} "
                f"{score.accuracy * 100:.0f}% ({score.correct}/{score.total})"
            )
        lines.append("")

    lines.append(
        "Use this context to adjust confidence levels, action thresholds, and analytical focus. "
        "Weight recommendations toward areas with proven accuracy and apply extra scrutiny to "
        "areas with poor track records."
    )
    return "\n".join(lines)


def learning_status_summary(ledger: Ledger | None) -> str:
    if ledger is None or ledger.accuracy is None:
        return "AI Learning: No data yet."

    acc = ledger.accuracy
    parts = [f"Predictions: {acc.total_predictions}", f"Resolved: {acc.resolved_count}"]
    if acc.overall is not None:
        parts.append(f"Accuracy: {acc.overall * 100:.0f}%")
    parts.append(f"Insights: {len(ledger.insights)}")
    return f"AI Learning: {' | '.join(parts)}"
