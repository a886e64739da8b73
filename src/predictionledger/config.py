from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from predictionledger.registry.store import LEDGER_FILENAME


@dataclass(frozen=True)
class LedgerConfig:
    reports_dir: Path
    ledger_filename: str = LEDGER_FILENAME

    @property
    def ledger_path(self) -> Path:
        return self.reports_dir / self.ledger_filename


def load_config() -> LedgerConfig:
    """Load ledger config from environment variables.

    Loads .env file if present in the current directory.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    return LedgerConfig(
        reports_dir=Path(os.environ.get("PREDICTION_REPORTS_DIR", "") or "reports"),
        ledger_filename=os.environ.get("PREDICTION_LEDGER_FILE", "") or LEDGER_FILENAME,
    )
