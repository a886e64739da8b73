"""CLI entry point for the prediction ledger.

Commands:
  - update: Run one daily update cycle (ingest, resolve, recompute, save)
  - context: Print the learning context for the next analysis pass
  - status: Print a one-line ledger summary
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from predictionledger.config import LedgerConfig, load_config


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _config(args: argparse.Namespace) -> LedgerConfig:
    config = load_config()
    if args.reports_dir:
        config = LedgerConfig(reports_dir=Path(args.reports_dir), ledger_filename=config.ledger_filename)
    return config


def cmd_update(args: argparse.Namespace) -> None:
    """Run one update cycle for the given (or today's) date."""
    from predictionledger.advisory.context import learning_status_summary
    from predictionledger.data.snapshots import ReportDirectory
    from predictionledger.learning.ledger import update_learning_ledger
    from predictionledger.registry.store import JsonLedgerStore

    config = _config(args)
    reports = ReportDirectory(config.reports_dir)
    store = JsonLedgerStore(config.ledger_path)

    current = args.date or date.today()
    logging.info("Updating ledger at %s for %s", store.path, current)
    ledger = update_learning_ledger(store, reports, reports, current)
    print(learning_status_summary(ledger))


def cmd_context(args: argparse.Namespace) -> None:
    """Print the learning context built from the saved ledger."""
    from predictionledger.advisory.context import generate_learning_context
    from predictionledger.registry.store import JsonLedgerStore

    store = JsonLedgerStore(_config(args).ledger_path)
    print(generate_learning_context(store.load()))


def cmd_status(args: argparse.Namespace) -> None:
    """Print the one-line status of the saved ledger."""
    from predictionledger.advisory.context import learning_status_summary
    from predictionledger.registry.store import JsonLedgerStore

    store = JsonLedgerStore(_config(args).ledger_path)
    print(learning_status_summary(store.load()))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="predictionledger",
        description="Track analyst predictions and score their calibration",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--reports-dir", help="Reports directory (default: $PREDICTION_REPORTS_DIR)")

    subs = parser.add_subparsers(dest="command", required=True)

    # update
    p_update = subs.add_parser("update", help="Run the daily ledger update")
    p_update.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Current date as YYYY-MM-DD (default: today)",
    )

    # context
    subs.add_parser("context", help="Print the learning context for the next analysis")

    # status
    subs.add_parser("status", help="Show ledger status")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "update": cmd_update,
        "context": cmd_context,
        "status": cmd_status,
    }
    try:
        commands[args.command](args)
    except RuntimeError as e:
        logging.error("%s failed: %s", args.command, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
