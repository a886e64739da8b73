"""One daily update cycle of the self-calibration ledger.

load -> ingest new analyst documents -> resolve open predictions ->
recompute accuracy, insights, recommendations, daily scores -> persist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from predictionledger.data.snapshots import AnalystDocumentSource, SnapshotProvider
from predictionledger.learning.calibration import compute_accuracy
from predictionledger.learning.extractor import extract_predictions
from predictionledger.learning.insights import generate_insights, generate_recommendations
from predictionledger.learning.resolver import OutcomeResolver
from predictionledger.models.ledger import DailyScore, Ledger
from predictionledger.models.prediction import Prediction
from predictionledger.registry.store import LedgerStore

logger = logging.getLogger(__name__)


def merge_predictions(existing: list[Prediction], incoming: Iterable[Prediction]) -> list[Prediction]:
    """Keyed union: existing records win and keep their order, new keys are appended."""
    seen = {p.key for p in existing}
    merged = list(existing)
    for pred in incoming:
        if pred.key in seen:
            continue
        seen.add(pred.key)
        merged.append(pred)
    return merged


def compute_daily_scores(predictions: list[Prediction]) -> list[DailyScore]:
    """Resolved predictions grouped by issue date, oldest first."""
    by_date: dict[date, list[int]] = {}
    for pred in predictions:
        if not pred.resolved:
            continue
        bucket = by_date.setdefault(pred.issue_date, [0, 0])
        bucket[0] += 1
        if pred.outcome.correct:
            bucket[1] += 1
    return [
        DailyScore(date=d, total=total, correct=correct)
        for d, (total, correct) in sorted(by_date.items())
    ]


def recompute(ledger: Ledger) -> Ledger:
    """Replace every derived section of the ledger from its prediction list."""
    ledger.accuracy = compute_accuracy(ledger.predictions)
    ledger.insights = generate_insights(ledger.accuracy, ledger.predictions)
    ledger.recommendations = generate_recommendations(ledger.accuracy)
    ledger.daily_scores = compute_daily_scores(ledger.predictions)
    return ledger


class LedgerUpdater:
    """Runs the update cycle against an injected store and data sources."""

    def __init__(
        self,
        store: LedgerStore,
        snapshots: SnapshotProvider,
        documents: AnalystDocumentSource,
    ) -> None:
        self._store = store
        self._snapshots = snapshots
        self._documents = documents

    def ingest(self, ledger: Ledger) -> int:
        """Extract predictions from analyst documents whose date is not in the ledger yet."""
        known_dates = {p.issue_date for p in ledger.predictions}
        incoming: list[Prediction] = []
        for issue_date in sorted(self._documents.document_dates()):
            if issue_date in known_dates:
                continue
            document = self._documents.load_document(issue_date)
            if document is None:
                continue
            extracted = extract_predictions(document, issue_date)
            logger.info("Extracted %d predictions from analysis of %s", len(extracted), issue_date)
            incoming.extend(extracted)

        before = len(ledger.predictions)
        ledger.predictions = merge_predictions(ledger.predictions, incoming)
        return len(ledger.predictions) - before

    def run(self, current_date: date) -> Ledger:
        ledger = self._store.load()

        added = self.ingest(ledger)
        resolver = OutcomeResolver(self._snapshots)
        ledger.predictions = resolver.resolve_all(ledger.predictions, current_date)

        recompute(ledger)
        ledger.last_updated = current_date

        self._store.save(ledger)
        logger.info(
            "Ledger updated for %s: %d new, %d total, %d resolved, %d open",
            current_date, added, len(ledger.predictions), ledger.accuracy.resolved_count,
            len(ledger.unresolved),
        )
        return ledger


def update_learning_ledger(
    store: LedgerStore,
    snapshots: SnapshotProvider,
    documents: AnalystDocumentSource,
    current_date: date,
) -> Ledger:
    return LedgerUpdater(store, snapshots, documents).run(current_date)
