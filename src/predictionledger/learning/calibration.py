"""Accuracy aggregation and confidence calibration over resolved predictions.

Computes grouped hit rates (by action, horizon, wallet, symbol), 0.1-wide
calibration bands, ECE and Brier score. Everything is recomputed from the
full prediction list on every run.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from predictionledger.models.ledger import AccuracySnapshot, CalibrationBand, GroupStats
from predictionledger.models.prediction import Prediction, round4

logger = logging.getLogger(__name__)

BAND_WIDTH = 0.1


def confidence_band(confidence: float) -> float:
    """Nearest 0.1 band, rounding halves up (0.25 -> 0.3)."""
    bands_per_unit = round(1 / BAND_WIDTH)
    return math.floor(confidence * bands_per_unit + 0.5) / bands_per_unit


def group_accuracy(
    resolved: list[Prediction],
    key_fn: Callable[[Prediction], str],
) -> dict[str, GroupStats]:
    """Hit rate per group, keyed in first-seen order."""
    counts: dict[str, list[int]] = {}
    for pred in resolved:
        bucket = counts.setdefault(key_fn(pred), [0, 0])
        bucket[0] += 1
        if pred.outcome.correct:
            bucket[1] += 1
    return {key: GroupStats(total=t, correct=c) for key, (t, c) in counts.items()}


def compute_calibration(resolved: list[Prediction]) -> list[CalibrationBand]:
    """Bucket confidence-bearing predictions into bands, sorted by band."""
    bands: dict[float, list[int]] = {}
    for pred in resolved:
        if pred.confidence is None:
            continue
        bucket = bands.setdefault(confidence_band(pred.confidence), [0, 0])
        bucket[0] += 1
        if pred.outcome.correct:
            bucket[1] += 1
    return [
        CalibrationBand(predicted_prob=band, sample_size=total, correct=correct)
        for band, (total, correct) in sorted(bands.items())
    ]


def compute_brier(resolved: list[Prediction]) -> float | None:
    """Mean squared error between stated confidence and the 1/0 outcome."""
    scored = [p for p in resolved if p.confidence is not None]
    if not scored:
        return None
    total = sum((p.confidence - (1.0 if p.outcome.correct else 0.0)) ** 2 for p in scored)
    return round4(total / len(scored))


def compute_ece(bands: list[CalibrationBand]) -> float | None:
    """Expected Calibration Error: band gaps weighted by band sample size."""
    total = sum(b.sample_size for b in bands)
    if total == 0:
        return None
    ece = 0.0
    for band in bands:
        ece += (band.sample_size / total) * abs(band.predicted_prob - band.correct / band.sample_size)
    return round4(ece)


def compute_accuracy(predictions: list[Prediction]) -> AccuracySnapshot:
    resolved = [p for p in predictions if p.resolved]
    if not resolved:
        return AccuracySnapshot(
            total_predictions=len(predictions),
            resolved_count=0,
            unresolved_count=len(predictions),
        )

    correct = sum(1 for p in resolved if p.outcome.correct)
    calibration = compute_calibration(resolved)
    snapshot = AccuracySnapshot(
        total_predictions=len(predictions),
        resolved_count=len(resolved),
        unresolved_count=len(predictions) - len(resolved),
        overall=round4(correct / len(resolved)),
        by_action=group_accuracy(resolved, lambda p: str(p.action)),
        by_horizon=group_accuracy(resolved, lambda p: str(p.horizon)),
        by_wallet=group_accuracy(resolved, lambda p: p.wallet),
        by_symbol=group_accuracy(resolved, lambda p: p.symbol),
        calibration=calibration,
        brier=compute_brier(resolved),
        ece=compute_ece(calibration),
    )
    logger.debug(
        "Accuracy: %d/%d resolved correct, %d calibration bands",
        correct, len(resolved), len(calibration),
    )
    return snapshot
