"""Typed view over the loaded TOML configuration."""

from __future__ import annotations

import os

from pydantic import BaseModel

from polyredeem.config.loader import ConfigLoader

REQUIRED_KEYS = [
    "polymarket.clob_url",
    "polymarket.gamma_url",
    "chain.rpc_url",
    "ledger.path",
    "credentials.path",
    "funding.min_usdc_balance",
]


class Settings(BaseModel):
    """Runtime settings; secrets come from the environment only."""

    clob_url: str = "https://clob.polymarket.com"
    gamma_url: str = "https://gamma-api.polymarket.com"
    chain_id: int = 137
    rpc_url: str = "https://polygon-rpc.com"
    receipt_timeout_seconds: float = 60.0
    request_timeout_seconds: float = 30.0
    max_markets: int = 1000
    page_size: int = 100
    ledger_path: str = "data/token-holding.json"
    credential_path: str = "data/credential.json"
    min_usdc_balance: int = 1_000_000
    poll_interval_ms: int = 15_000
    timeout_ms: int = 0
    log_every_poll: bool = True
    wait_for_next_market_start: bool = True
    market_interval_minutes: int = 15
    private_key: str = ""
    funder_address: str = ""

    @classmethod
    def from_loader(cls, loader: ConfigLoader) -> Settings:
        loader.validate_keys(REQUIRED_KEYS)
        loader.validate_ranges()
        defaults = cls()
        return cls(
            clob_url=loader.get("polymarket.clob_url", defaults.clob_url),
            gamma_url=loader.get("polymarket.gamma_url", defaults.gamma_url),
            chain_id=loader.get("polymarket.chain_id", defaults.chain_id),
            rpc_url=os.environ.get("POLYGON_RPC_URL") or loader.get("chain.rpc_url", defaults.rpc_url),
            receipt_timeout_seconds=loader.get(
                "chain.receipt_timeout_seconds", defaults.receipt_timeout_seconds,
            ),
            request_timeout_seconds=loader.get(
                "chain.request_timeout_seconds", defaults.request_timeout_seconds,
            ),
            max_markets=loader.get("redeem.max_markets", defaults.max_markets),
            page_size=loader.get("redeem.page_size", defaults.page_size),
            ledger_path=loader.get("ledger.path", defaults.ledger_path),
            credential_path=loader.get("credentials.path", defaults.credential_path),
            min_usdc_balance=loader.get("funding.min_usdc_balance", defaults.min_usdc_balance),
            poll_interval_ms=loader.get("funding.poll_interval_ms", defaults.poll_interval_ms),
            timeout_ms=loader.get("funding.timeout_ms", defaults.timeout_ms),
            log_every_poll=loader.get("funding.log_every_poll", defaults.log_every_poll),
            wait_for_next_market_start=loader.get(
                "session.wait_for_next_market_start", defaults.wait_for_next_market_start,
            ),
            market_interval_minutes=loader.get(
                "session.market_interval_minutes", defaults.market_interval_minutes,
            ),
            private_key=os.environ.get("POLYMARKET_PRIVATE_KEY", ""),
            funder_address=os.environ.get("POLYMARKET_FUNDER_ADDRESS", ""),
        )
