"""Tests for Settings."""

from __future__ import annotations

from pathlib import Path  # noqa: TCH003

import pytest

from polyredeem.config.loader import ConfigError, ConfigLoader
from polyredeem.config.settings import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("POLYGON_RPC_URL", "POLYMARKET_PRIVATE_KEY", "POLYMARKET_FUNDER_ADDRESS"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_from_loader(self, config_loader: ConfigLoader) -> None:
        settings = Settings.from_loader(config_loader)
        assert settings.chain_id == 137
        assert settings.max_markets == 1000
        assert settings.min_usdc_balance == 1_000_000
        assert settings.timeout_ms == 0
        assert settings.wait_for_next_market_start is False
        assert settings.private_key == ""

    def test_secrets_from_environment(
        self, config_loader: ConfigLoader, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("POLYMARKET_PRIVATE_KEY", "0xkey")
        monkeypatch.setenv("POLYMARKET_FUNDER_ADDRESS", "0xsafe")
        monkeypatch.setenv("POLYGON_RPC_URL", "https://private.rpc")
        settings = Settings.from_loader(config_loader)
        assert settings.private_key == "0xkey"
        assert settings.funder_address == "0xsafe"
        assert settings.rpc_url == "https://private.rpc"

    def test_invalid_range_rejected(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POLYREDEEM__funding__poll_interval_ms", "0")
        with pytest.raises(ConfigError):
            Settings.from_loader(ConfigLoader(config_dir=config_dir))

    def test_missing_required_key_rejected(self, config_dir: Path) -> None:
        default = config_dir / "default.toml"
        default.write_text(default.read_text().replace('path = "data/token-holding.json"\n', ""))
        with pytest.raises(ConfigError, match="ledger.path"):
            Settings.from_loader(ConfigLoader(config_dir=config_dir))
