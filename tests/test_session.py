"""Tests for trading session bootstrap."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from polyredeem.config.settings import Settings
from polyredeem.session import build_clob_client, run_session, seconds_until_next_boundary


class _Strategy:
    def __init__(self, clob_client: Any) -> None:
        self.clob_client = clob_client
        self.started = False

    def start(self) -> None:
        self.started = True


class _AsyncStrategy(_Strategy):
    async def start(self) -> None:  # type: ignore[override]
        self.started = True


def _collateral(*answers: tuple[int, int]) -> MagicMock:
    source = MagicMock()
    source.get_collateral = AsyncMock(side_effect=list(answers))
    return source


def _settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "private_key": "0x" + "11" * 32,
        "min_usdc_balance": 1_000_000,
        "poll_interval_ms": 10,
        "wait_for_next_market_start": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _no_allowances() -> Any:
    with patch("polyredeem.session._ensure_allowances", new=AsyncMock()) as ensure:
        yield ensure


class TestBoundary:
    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (datetime(2026, 3, 1, 10, 7, 30, tzinfo=UTC), 450.0),
            (datetime(2026, 3, 1, 10, 59, 59, tzinfo=UTC), 1.0),
            (datetime(2026, 3, 1, 23, 50, 0, tzinfo=UTC), 600.0),
        ],
    )
    def test_seconds_until_next_boundary(self, now: datetime, expected: float) -> None:
        assert seconds_until_next_boundary(now, minutes=15) == expected

    def test_hourly_interval(self) -> None:
        now = datetime(2026, 3, 1, 10, 30, 0, tzinfo=UTC)
        assert seconds_until_next_boundary(now, minutes=60) == 1800.0


class TestRunSession:
    @pytest.mark.asyncio()
    async def test_starts_strategy_once_funded(self) -> None:
        clob = MagicMock()
        created: list[_Strategy] = []

        def factory(client: Any) -> _Strategy:
            created.append(_Strategy(client))
            return created[-1]

        with patch("polyredeem.execution.funding.asyncio.sleep", new=AsyncMock()):
            code = await run_session(
                factory,
                _settings(),
                clob_client=clob,
                collateral=_collateral((500_000, 10**12), (1_500_000, 10**12)),
            )
        assert code == 0
        assert created[0].started is True
        assert created[0].clob_client is clob

    @pytest.mark.asyncio()
    async def test_awaits_async_start(self) -> None:
        strategy = _AsyncStrategy(None)
        code = await run_session(
            lambda _client: strategy,
            _settings(),
            clob_client=MagicMock(),
            collateral=_collateral((2_000_000, 2_000_000)),
        )
        assert code == 0
        assert strategy.started is True

    @pytest.mark.asyncio()
    async def test_funding_timeout_never_starts(self) -> None:
        strategy = _Strategy(None)
        source = MagicMock()
        source.get_collateral = AsyncMock(return_value=(0, 0))
        code = await run_session(
            lambda _client: strategy,
            _settings(timeout_ms=20, poll_interval_ms=5),
            clob_client=MagicMock(),
            collateral=source,
        )
        assert code == 1
        assert strategy.started is False

    @pytest.mark.asyncio()
    async def test_allowance_failure_is_not_fatal(self, _no_allowances: AsyncMock) -> None:
        _no_allowances.side_effect = RuntimeError("rpc down")
        strategy = _Strategy(None)
        code = await run_session(
            lambda _client: strategy,
            _settings(),
            clob_client=MagicMock(),
            collateral=_collateral((2_000_000, 2_000_000)),
        )
        assert code == 0
        assert strategy.started is True

    @pytest.mark.asyncio()
    async def test_no_client_aborts(self, _no_allowances: AsyncMock) -> None:
        factory = MagicMock()
        with (
            patch("polyredeem.session.create_credential", return_value=None),
            patch("polyredeem.session.build_clob_client", return_value=None),
        ):
            code = await run_session(factory, _settings())
        assert code == 1
        factory.assert_not_called()
        _no_allowances.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_waits_for_market_boundary(self) -> None:
        strategy = _Strategy(None)
        with (
            patch("polyredeem.session.seconds_until_next_boundary", return_value=42.0),
            patch("polyredeem.session.asyncio.sleep", new=AsyncMock()) as sleep,
        ):
            code = await run_session(
                lambda _client: strategy,
                _settings(wait_for_next_market_start=True),
                clob_client=MagicMock(),
                collateral=_collateral((2_000_000, 2_000_000)),
            )
        assert code == 0
        sleep.assert_awaited_once_with(42.0)


class TestBuildClobClient:
    def test_missing_key(self) -> None:
        assert build_clob_client(_settings(private_key=""), None) is None

    def test_safe_signature_type_with_funder(self) -> None:
        with patch("py_clob_client.client.ClobClient") as clob_cls:
            build_clob_client(_settings(funder_address="0xsafe"), "creds")
        kwargs = clob_cls.call_args.kwargs
        assert kwargs["signature_type"] == 2
        assert kwargs["funder"] == "0xsafe"
        assert kwargs["creds"] == "creds"

    def test_construction_failure(self) -> None:
        with patch("py_clob_client.client.ClobClient", side_effect=RuntimeError("bad key")):
            assert build_clob_client(_settings(), None) is None
