from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from predictionledger.models.ledger import LEDGER_VERSION, Ledger

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "ai-learning.json"


class LedgerStore(Protocol):
    def load(self) -> Ledger: ...

    def save(self, ledger: Ledger) -> str: ...


def decode_ledger(data: object, source: str) -> Ledger:
    """Validate and decode serialized ledger state.

    Raises RuntimeError rather than starting over, since an empty ledger
    would silently drop the prediction history on the next save.
    """
    if not isinstance(data, dict):
        raise RuntimeError(f"Ledger at {source} is not a JSON object")
    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise RuntimeError(f"Ledger at {source} has no valid version field")
    if version > LEDGER_VERSION:
        raise RuntimeError(
            f"Ledger at {source} has version {version}; "
            f"this build supports up to {LEDGER_VERSION}"
        )
    try:
        return Ledger.from_dict(data)
    except (KeyError, OverflowError, TypeError, ValueError) as e:
        raise RuntimeError(f"Ledger at {source} contains malformed records: {e}") from e


def encode_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger.to_dict(), indent=2, ensure_ascii=False)


class JsonLedgerStore:
    """Ledger persisted as one JSON file, replaced atomically on save."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @classmethod
    def in_directory(cls, reports_dir: Path | str, filename: str = LEDGER_FILENAME) -> JsonLedgerStore:
        return cls(Path(reports_dir) / filename)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Ledger:
        if not self._path.exists():
            logger.info("No ledger at %s, starting a new one", self._path)
            return Ledger()
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RuntimeError(f"Failed to read ledger at {self._path}: {e}") from e
        try:
            data = json.loads(text)
        except (RecursionError, ValueError) as e:
            raise RuntimeError(f"Ledger at {self._path} is not valid JSON: {e}") from e
        ledger = decode_ledger(data, str(self._path))
        logger.info("Loaded ledger with %d predictions from %s", len(ledger.predictions), self._path)
        return ledger

    def save(self, ledger: Ledger) -> str:
        """Write to a temp file in the same directory, then replace the ledger."""
        payload = encode_ledger(ledger)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RuntimeError(f"Failed to persist ledger to {self._path}: {e}") from e
        logger.info("Saved ledger with %d predictions to %s", len(ledger.predictions), self._path)
        return str(self._path)


class InMemoryLedgerStore:
    """Keeps the serialized ledger in memory; same encode/decode path as the file store."""

    def __init__(self, initial: Ledger | None = None) -> None:
        self.payload: str | None = encode_ledger(initial) if initial is not None else None
        self.saves = 0

    def load(self) -> Ledger:
        if self.payload is None:
            return Ledger()
        return decode_ledger(json.loads(self.payload), "memory")

    def save(self, ledger: Ledger) -> str:
        self.payload = encode_ledger(ledger)
        self.saves += 1
        return "memory"
