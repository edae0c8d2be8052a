"""Tests for PositionLedger."""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TCH003

import pytest

from polyredeem.data.holdings import PositionLedger
from polyredeem.errors import LedgerError


class TestPositionLedger:
    def test_missing_file_is_empty(self, ledger: PositionLedger) -> None:
        assert ledger.all() == []
        assert len(ledger) == 0
        assert ledger.get("0xA") is None

    def test_add_creates_file_and_accumulates(self, ledger: PositionLedger) -> None:
        ledger.add("0xA", "tok-yes", 10.0)
        entry = ledger.add("0xA", "tok-yes", 5.5)
        assert entry.positions == {"tok-yes": 15.5}
        assert ledger.path.exists()
        assert json.loads(ledger.path.read_text()) == {"0xA": {"tok-yes": 15.5}}

    def test_insertion_order_preserved(self, ledger: PositionLedger) -> None:
        for cid in ("0xC", "0xA", "0xB"):
            ledger.add(cid, "t", 1.0)
        assert [e.condition_id for e in ledger.all()] == ["0xC", "0xA", "0xB"]

    def test_total_amount(self, ledger: PositionLedger) -> None:
        ledger.add("0xA", "yes", 2.0)
        ledger.add("0xA", "no", 3.0)
        entry = ledger.get("0xA")
        assert entry is not None
        assert entry.total_amount == 5.0

    def test_remove(self, ledger: PositionLedger) -> None:
        ledger.add("0xA", "t", 1.0)
        ledger.add("0xB", "t", 1.0)
        assert ledger.remove("0xA") is True
        assert ledger.remove("0xA") is False
        assert [e.condition_id for e in ledger.all()] == ["0xB"]

    def test_clear(self, ledger: PositionLedger) -> None:
        ledger.add("0xA", "t", 1.0)
        ledger.clear()
        assert len(ledger) == 0

    def test_reads_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "holdings.json"
        path.write_text('{"0xA": {"1": 3}, "0xB": {}}')
        ledger = PositionLedger(path)
        assert [e.condition_id for e in ledger.all()] == ["0xA", "0xB"]
        assert ledger.get("0xA").positions == {"1": 3.0}  # type: ignore[union-attr]

    def test_empty_file_is_empty_ledger(self, tmp_path: Path) -> None:
        path = tmp_path / "holdings.json"
        path.write_text("")
        assert PositionLedger(path).all() == []

    @pytest.mark.parametrize(
        "content",
        ["not json", "[1, 2]", '{"0xA": 5}', '{"0xA": {"t": "lots"}}', '{"0xA": {"t": null}}'],
    )
    def test_malformed_file_raises(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "holdings.json"
        path.write_text(content)
        with pytest.raises(LedgerError):
            PositionLedger(path).all()

    def test_no_temp_files_left_behind(self, ledger: PositionLedger) -> None:
        ledger.add("0xA", "t", 1.0)
        ledger.remove("0xA")
        leftovers = [p.name for p in ledger.path.parent.iterdir() if p.name.startswith(".ledger-")]
        assert leftovers == []
