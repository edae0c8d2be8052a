"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path  # noqa: TCH003

import pytest

from polyredeem.config.loader import ConfigLoader
from polyredeem.data.holdings import PositionLedger
from polyredeem.errors import RedemptionError
from polyredeem.models.redemption import (
    BalanceSnapshot,
    Receipt,
    ResolutionState,
    ResolutionStatus,
)

HOLDER = "0x1234567890abcdef1234567890abcdef12345678"


class FakeOracle:
    """ResolutionSource returning canned statuses; unknown ids are unresolved."""

    def __init__(self, statuses: dict[str, ResolutionStatus] | None = None) -> None:
        self.statuses = statuses or {}
        self.calls: list[str] = []

    def resolve(self, condition_id: str, winners: tuple[int, ...] = (0,), title: str | None = None) -> None:
        self.statuses[condition_id] = ResolutionStatus(
            condition_id=condition_id,
            state=ResolutionState.RESOLVED,
            winning_indices=winners,
            reason="payout reported",
            market_title=title,
        )

    def indeterminate(self, condition_id: str) -> None:
        self.statuses[condition_id] = ResolutionStatus(
            condition_id=condition_id,
            state=ResolutionState.INDETERMINATE,
            reason="sources disagree",
        )

    async def check_resolution(self, condition_id: str) -> ResolutionStatus:
        self.calls.append(condition_id)
        return self.statuses.get(
            condition_id,
            ResolutionStatus(
                condition_id=condition_id,
                state=ResolutionState.UNRESOLVED,
                reason="market not resolved",
            ),
        )


class FakeBalances:
    """BalanceSource backed by a dict; ids in ``errors`` return an error snapshot."""

    def __init__(self, balances: dict[str, dict[int, int]] | None = None) -> None:
        self.balances = balances or {}
        self.errors: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def get_balances(self, condition_id: str, holder: str) -> BalanceSnapshot:
        self.calls.append((condition_id, holder))
        if condition_id in self.errors:
            return BalanceSnapshot(condition_id=condition_id, holder=holder, error="rpc timeout")
        return BalanceSnapshot(
            condition_id=condition_id,
            holder=holder,
            balances=self.balances.get(condition_id, {}),
        )


class FakeRedeemer:
    """RedemptionSubmitter that succeeds unless the id has a configured failure."""

    def __init__(self) -> None:
        self.failures: dict[str, str] = {}
        self.calls: list[str] = []

    async def redeem(self, condition_id: str, outcome_slots: int = 2) -> Receipt:
        self.calls.append(condition_id)
        if condition_id in self.failures:
            raise RedemptionError(condition_id, self.failures[condition_id])
        return Receipt(tx_hash=f"r{len(self.calls)}")


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """Create a temp config directory with default.toml."""
    config = tmp_path / "config"
    config.mkdir()

    default_toml = config / "default.toml"
    default_toml.write_text(
        """\
[polymarket]
clob_url = "https://clob.polymarket.com"
gamma_url = "https://gamma-api.polymarket.com"
chain_id = 137

[chain]
rpc_url = "https://polygon-rpc.com"
receipt_timeout_seconds = 60
request_timeout_seconds = 30

[redeem]
max_markets = 1000
page_size = 100

[ledger]
path = "data/token-holding.json"

[credentials]
path = "data/credential.json"

[funding]
min_usdc_balance = 1000000
poll_interval_ms = 15000
timeout_ms = 0
log_every_poll = true

[session]
wait_for_next_market_start = false
market_interval_minutes = 15
"""
    )
    return config


@pytest.fixture()
def config_loader(config_dir: Path) -> ConfigLoader:
    """ConfigLoader with test config."""
    loader = ConfigLoader(config_dir=config_dir, env="test")
    loader.load()
    return loader


@pytest.fixture()
def ledger(tmp_path: Path) -> PositionLedger:
    return PositionLedger(tmp_path / "data" / "token-holding.json")


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture()
def balances() -> FakeBalances:
    return FakeBalances()


@pytest.fixture()
def redeemer() -> FakeRedeemer:
    return FakeRedeemer()
