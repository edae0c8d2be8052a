"""Funding gate result model."""

from __future__ import annotations

from pydantic import BaseModel


class FundingResult(BaseModel):
    """Outcome of waiting for collateral; amounts in USDC base units."""

    ok: bool
    available: int
    allowance: int
    balance: int
    polls: int = 0

    model_config = {"frozen": True}
