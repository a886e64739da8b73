"""Prediction tracking and self-calibration ledger."""

__version__ = "0.1.0"
