from predictionledger.learning.calibration import compute_accuracy, compute_calibration
from predictionledger.learning.extractor import extract_predictions
from predictionledger.learning.insights import generate_insights, generate_recommendations
from predictionledger.learning.ledger import LedgerUpdater, merge_predictions, update_learning_ledger
from predictionledger.learning.resolver import OutcomeResolver, resolve_prediction

__all__ = [
    "LedgerUpdater",
    "OutcomeResolver",
    "compute_accuracy",
    "compute_calibration",
    "extract_predictions",
    "generate_insights",
    "generate_recommendations",
    "merge_predictions",
    "resolve_prediction",
    "update_learning_ledger",
]
