"""Domain models for sc_market: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.sc_common.enums import Direction

MAX_NAME_BYTES = 16


@dataclass
class Market:
    id: str
    name: str                        # <= 16 UTF-8 bytes, e.g. "GOLD"
    mark_price: int                  # > 0, fixed-point quote units
    authority: str                   # only this caller may push prices
    last_price_update: int           # unix seconds
    open_interest_long: int = 0      # sum of open long collateral
    open_interest_short: int = 0     # sum of open short collateral
    total_fees_collected: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def open_interest(self, direction: Direction) -> int:
        if direction == Direction.LONG:
            return self.open_interest_long
        return self.open_interest_short
