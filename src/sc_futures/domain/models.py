"""Domain models for sc_futures: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.sc_common.enums import Direction, PositionStatus


@dataclass
class Position:
    id: str                          # entity_id("position", owner, market_id, nonce)
    owner: str
    market_id: str
    nonce: int
    direction: Direction
    status: PositionStatus
    deposit: int                     # gross amount moved in from the owner's wallet
    fee_paid: int
    collateral: int                  # deposit - fee, fixed for the position's life
    entry_price: int
    opened_at: int                   # unix seconds
    exit_price: int | None = None
    realized_pnl: int | None = None
    payout: int | None = None        # amount actually transferred on close / to liquidator
    closed_by: str | None = None
    closed_at: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN


@dataclass(frozen=True)
class CloseQuote:
    pnl: int
    payout: int                      # collateral + pnl, floored at 0, before custody clamp


@dataclass(frozen=True)
class LiquidationQuote:
    loss_bps: int
    reward: int                      # before custody clamp
