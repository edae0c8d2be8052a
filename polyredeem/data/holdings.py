"""Position ledger: JSON file of markets the holder has traded.

File layout: ``{condition_id: {token_id: amount}}``. Insertion order of
the top-level object is the processing order of a ledger-sourced pass.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from polyredeem.core.logging import get_logger
from polyredeem.errors import LedgerError
from polyredeem.models.holdings import LedgerEntry

log = get_logger(__name__)

DEFAULT_LEDGER_PATH = "data/token-holding.json"


class PositionLedger:
    """File-backed store of ledger entries.

    Single-process use only: every mutation rewrites the whole file via an
    atomic replace, and concurrent writers would race.
    """

    def __init__(self, path: str | Path = DEFAULT_LEDGER_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, dict[str, float]]:
        if not self._path.exists():
            return {}
        try:
            raw: Any = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            msg = f"Cannot read position ledger {self._path}: {exc}"
            raise LedgerError(msg) from exc
        if not isinstance(raw, dict):
            msg = f"Position ledger {self._path} must contain a JSON object"
            raise LedgerError(msg)
        holdings: dict[str, dict[str, float]] = {}
        for condition_id, tokens in raw.items():
            if not isinstance(tokens, dict):
                msg = f"Ledger entry {condition_id} must map token ids to amounts"
                raise LedgerError(msg)
            try:
                holdings[condition_id] = {str(k): float(v) for k, v in tokens.items()}
            except (TypeError, ValueError) as exc:
                msg = f"Ledger entry {condition_id} has a non-numeric amount: {exc}"
                raise LedgerError(msg) from exc
        return holdings

    def _write(self, holdings: dict[str, dict[str, float]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".ledger-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(holdings, f, indent=2)
            os.replace(tmp, self._path)
        except OSError as exc:
            Path(tmp).unlink(missing_ok=True)
            msg = f"Cannot write position ledger {self._path}: {exc}"
            raise LedgerError(msg) from exc

    def all(self) -> list[LedgerEntry]:
        """Every entry, in file order."""
        return [
            LedgerEntry(condition_id=cid, positions=tokens)
            for cid, tokens in self._read().items()
        ]

    def get(self, condition_id: str) -> LedgerEntry | None:
        tokens = self._read().get(condition_id)
        if tokens is None:
            return None
        return LedgerEntry(condition_id=condition_id, positions=tokens)

    def add(self, condition_id: str, token_id: str, amount: float) -> LedgerEntry:
        """Record ``amount`` more of ``token_id`` for a market."""
        holdings = self._read()
        tokens = holdings.setdefault(condition_id, {})
        tokens[token_id] = tokens.get(token_id, 0.0) + amount
        self._write(holdings)
        log.debug("ledger.added", condition_id=condition_id[:16], token_id=token_id[:16], amount=amount)
        return LedgerEntry(condition_id=condition_id, positions=tokens)

    def remove(self, condition_id: str) -> bool:
        """Delete one entry; returns False when it was not present."""
        holdings = self._read()
        if condition_id not in holdings:
            return False
        del holdings[condition_id]
        self._write(holdings)
        log.info("ledger.removed", condition_id=condition_id[:16], remaining=len(holdings))
        return True

    def clear(self) -> None:
        self._write({})

    def __len__(self) -> int:
        return len(self._read())
