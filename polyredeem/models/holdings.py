"""Position ledger entry model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LedgerEntry(BaseModel):
    """Tokens recorded for one market by upstream trading activity."""

    condition_id: str
    positions: dict[str, float] = Field(default_factory=dict)

    @property
    def total_amount(self) -> float:
        return sum(self.positions.values())

    model_config = {"frozen": True}
