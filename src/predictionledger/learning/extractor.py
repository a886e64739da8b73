"""Prediction extraction from schema-less analyst documents.

The analysis pass emits JSON with no fixed shape: wallet sections keyed by
name, a ``wallets`` array, flat action lists, scenario matrices as arrays or
maps. Each shape is handled by an independent matcher; their results are
unioned and deduplicated on the prediction identity key.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from datetime import date
from typing import Any

from predictionledger.models.prediction import (
    SCENARIO_SYMBOL,
    Action,
    Horizon,
    Prediction,
    round4,
)

logger = logging.getLogger(__name__)

COMBINED_WALLET = "combined"
PORTFOLIO_WALLET = "portfolio"

WALLET_KEY_TOKENS = ("wallet", "us_equit", "crypto", "egx", "thndr", "equities")
WALLET_ACTION_FIELDS = (
    "actions", "actionPlan", "action_plan", "recommendations",
    "holdings", "positions", "holdingActions", "holding_actions",
)
TOP_LEVEL_ACTION_FIELDS = ("actions", "recommendations", "actionPlan", "action_plan")
SCENARIO_FIELDS = ("scenarioMatrix", "scenario_matrix", "scenarios")
WALLET_SCENARIO_FIELDS = ("scenarios", "scenarioMatrix", "scenario_matrix")

# Exact synonyms; anything else falls back to prefix matching
ACTION_SYNONYMS: dict[str, Action] = {
    "ADD": Action.BUY,
    "EXIT": Action.SELL,
    "CLOSE": Action.SELL,
    "MAINTAIN": Action.HOLD,
    "KEEP": Action.HOLD,
    "REDUCE": Action.TRIM,
    "LIGHTEN": Action.TRIM,
}
ACTION_PREFIXES = (Action.BUY, Action.SELL, Action.HOLD, Action.TRIM)

# Checked in order; longer buckets first so "2 weeks" never lands in 1w
HORIZON_TOKENS: tuple[tuple[Horizon, tuple[str, ...]], ...] = (
    (Horizon.TWO_WEEKS, ("2 week", "2w", "14d", "14 day", "2-week", "two week", "fortnight")),
    (Horizon.MONTH, ("month", "30d", "30 day", "4w", "4 week")),
    (Horizon.WEEK, ("1 week", "1w", "7d", "7 day", "week")),
    (Horizon.DAY, ("24", "1 day", "1d", "day")),
)

_NUMBER = re.compile(r"\d*\.?\d+")
_SIGNED_NUMBER = re.compile(r"[-+]?\d*\.?\d+")

Matcher = Callable[[dict, date], Iterable[Prediction]]


# ---- Field normalization ----

def normalize_action(raw: Any) -> Action:
    """Map a free-form action string onto the action enum (UNKNOWN if unmapped)."""
    if raw is None or isinstance(raw, (dict, list)):
        return Action.UNKNOWN
    upper = str(raw).upper().strip()
    if not upper:
        return Action.UNKNOWN
    if upper in ACTION_SYNONYMS:
        return ACTION_SYNONYMS[upper]
    for action in ACTION_PREFIXES:
        if upper.startswith(action.value):
            return action
    return Action.UNKNOWN


def _to_float(raw: int | float) -> float | None:
    # ints beyond float range overflow instead of becoming inf
    try:
        return float(raw)
    except OverflowError:
        return None


def parse_probability(raw: Any) -> float | None:
    """Parse 0.75, 75, "75%", "~70%", "70-80%" or "0.65" into a fraction.

    Values above 1 are read as percentages. Anything that still falls
    outside [0, 1] is rejected.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = _to_float(raw)
    elif isinstance(raw, str):
        match = _NUMBER.search(raw)
        if not match:
            return None
        value = float(match.group())
    else:
        return None

    if value is None or value != value:
        return None
    if value > 1:
        value /= 100
    if not 0 <= value <= 1:
        return None
    return round4(value)


def parse_size_change(raw: Any) -> float | None:
    """Parse a signed size change ("+2%", "-0.5", 3) into a fraction."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = _to_float(raw)
    elif isinstance(raw, str):
        match = _SIGNED_NUMBER.search(raw.replace(" ", ""))
        if not match:
            return None
        value = float(match.group())
        if "%" in raw:
            return round4(value / 100)
    else:
        return None
    if value is None or value != value:
        return None
    if abs(value) > 1:
        value /= 100
    return round4(value)


def parse_level(raw: Any) -> float | None:
    """Parse a price level (150, "150.5", "$1,200"); zero and junk become None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = _to_float(raw)
    elif isinstance(raw, str):
        match = _SIGNED_NUMBER.search(raw.replace(",", ""))
        if not match:
            return None
        value = float(match.group())
    else:
        return None
    if value is None or value != value or value in (float("inf"), float("-inf")) or value == 0:
        return None
    return value


def normalize_horizon(raw: Any, default: Horizon = Horizon.DAY) -> Horizon:
    if raw is None or isinstance(raw, (dict, list, bool)):
        return default
    text = str(raw).lower().strip()
    if not text:
        return default
    for horizon in Horizon:
        if text == horizon.value:
            return horizon
    for horizon, tokens in HORIZON_TOKENS:
        if any(token in text for token in tokens):
            return horizon
    return Horizon.DAY


def _first(item: dict, *fields: str) -> Any:
    """First field that is present and not empty (None/"" are skipped, 0 is kept)."""
    for name in fields:
        value = item.get(name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


# ---- Record builders ----

def parse_action_item(item: Any, issue_date: date, wallet: str) -> Prediction | None:
    """Turn one action-list entry into a prediction; None if it has no symbol."""
    if not isinstance(item, dict):
        return None
    symbol_raw = _first(item, "symbol", "ticker", "name")
    if symbol_raw is None or isinstance(symbol_raw, (dict, list)):
        return None
    symbol = str(symbol_raw).upper().strip()
    if not symbol:
        return None

    return Prediction(
        issue_date=issue_date,
        symbol=symbol,
        wallet=wallet,
        action=normalize_action(_first(item, "action", "actionNow", "action_now", "recommendation")),
        horizon=normalize_horizon(_first(item, "horizon", "timeframe")),
        confidence=parse_probability(_first(item, "confidence", "probability", "prob")),
        trigger_level=parse_level(_first(item, "triggerLevel", "trigger", "entry", "triggerPrice")),
        stop_level=parse_level(_first(item, "stopLevel", "stop", "invalidation", "stopLoss")),
        size_change_pct=parse_size_change(_first(item, "sizeChange", "size_change", "sizing")),
    )


def parse_scenario(entry: Any, issue_date: date, wallet: str, key: str | None = None) -> Prediction | None:
    """Turn one scenario-matrix entry into a SCENARIO prediction.

    ``key`` is the map key when the matrix is an object; it doubles as the
    label, and a bare number under it is read as the probability.
    """
    if isinstance(entry, dict):
        label_raw = _first(entry, "name", "label", "scenario")
        label = str(label_raw if label_raw is not None else key or "unknown").lower().strip()
        prob = parse_probability(_first(entry, "probability", "prob", "likelihood"))
        horizon = normalize_horizon(_first(entry, "horizon", "timeframe"), default=Horizon.TWO_WEEKS)
    elif key is not None and isinstance(entry, (int, float, str)):
        label = key.lower().strip()
        prob = parse_probability(entry)
        horizon = Horizon.TWO_WEEKS
    else:
        return None

    if prob is None:
        return None
    return Prediction(
        issue_date=issue_date,
        symbol=SCENARIO_SYMBOL,
        wallet=wallet,
        action=Action.SCENARIO,
        horizon=horizon,
        confidence=prob,
        scenario_label=label or "unknown",
    )


def _scenario_matrix(data: Any, issue_date: date, wallet: str) -> Iterator[Prediction]:
    if isinstance(data, list):
        entries = [(None, entry) for entry in data]
    elif isinstance(data, dict):
        entries = [(str(k), v) for k, v in data.items()]
    else:
        return
    for key, entry in entries:
        pred = parse_scenario(entry, issue_date, wallet, key=key)
        if pred is not None:
            yield pred


def _action_lists(container: dict, fields: Iterable[str], issue_date: date, wallet: str) -> Iterator[Prediction]:
    for name in fields:
        items = container.get(name)
        if not isinstance(items, list):
            continue
        for item in items:
            pred = parse_action_item(item, issue_date, wallet)
            if pred is not None:
                yield pred


# ---- Structural matchers ----

def find_wallet_sections(document: dict) -> list[tuple[str, dict]]:
    """Wallet-like containers: name-matched top-level objects plus ``wallets[]``."""
    sections: list[tuple[str, dict]] = []
    for key, value in document.items():
        lower = str(key).lower()
        if any(token in lower for token in WALLET_KEY_TOKENS) and isinstance(value, dict):
            sections.append((str(key), value))

    wallets = document.get("wallets")
    if isinstance(wallets, list):
        for wallet in wallets:
            if isinstance(wallet, dict):
                name = _first(wallet, "walletName", "wallet", "name")
                sections.append((str(name) if name is not None else "unknown", wallet))
    return sections


def match_wallet_sections(document: dict, issue_date: date) -> Iterator[Prediction]:
    for wallet_name, section in find_wallet_sections(document):
        yield from _action_lists(section, WALLET_ACTION_FIELDS, issue_date, wallet_name)
        for name in WALLET_SCENARIO_FIELDS:
            if section.get(name):
                yield from _scenario_matrix(section[name], issue_date, wallet_name)
                break


def match_top_level_actions(document: dict, issue_date: date) -> Iterator[Prediction]:
    yield from _action_lists(document, TOP_LEVEL_ACTION_FIELDS, issue_date, COMBINED_WALLET)


def match_top_level_scenarios(document: dict, issue_date: date) -> Iterator[Prediction]:
    for name in SCENARIO_FIELDS:
        yield from _scenario_matrix(document.get(name), issue_date, PORTFOLIO_WALLET)


MATCHERS: tuple[Matcher, ...] = (
    match_wallet_sections,
    match_top_level_actions,
    match_top_level_scenarios,
)


def dedupe(predictions: Iterable[Prediction]) -> list[Prediction]:
    """Stable dedup on the identity key; the first occurrence wins."""
    seen: set[tuple] = set()
    unique: list[Prediction] = []
    for pred in predictions:
        if pred.key in seen:
            continue
        seen.add(pred.key)
        unique.append(pred)
    return unique


def extract_predictions(document: Any, issue_date: date) -> list[Prediction]:
    """Extract canonical predictions from one analyst document.

    Never raises: a non-object document yields an empty list, and a matcher
    that trips over malformed structure is skipped.
    """
    if not isinstance(document, dict):
        return []

    found: list[Prediction] = []
    for matcher in MATCHERS:
        try:
            found.extend(matcher(document, issue_date))
        except (AttributeError, KeyError, OverflowError, TypeError, ValueError):
            logger.warning(
                "Matcher %s failed on document for %s", matcher.__name__, issue_date,
                exc_info=True,
            )

    predictions = dedupe(found)
    logger.debug(
        "Extracted %d predictions (%d before dedup) for %s",
        len(predictions), len(found), issue_date,
    )
    return predictions
