"""Domain models for sc_pool: pure dataclasses, no SQLAlchemy dependency.

Amounts are in the smallest unit of their currency; USD values use the
base currency's unit (6 decimals, so 1_000_000 == $1).
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.sc_common.enums import RoundOutcome


@dataclass
class PoolConfig:
    currencies: tuple[str, ...]          # first entry is the USD-valued base currency
    discount_currencies: frozenset[str]
    entry_fee_bps: int
    discount_bps: int
    min_bet_usd: int
    default_duration_seconds: int
    exchange_rate_decimals: int = 8
    resolve_admin_only: bool = False
    claim_window_seconds: int = 7 * 24 * 3600

    @property
    def base_currency(self) -> str:
        return self.currencies[0]

    @property
    def currency_count(self) -> int:
        return len(self.currencies)


@dataclass
class CurrencyPool:
    """One settlement currency's side of a round."""

    currency: str
    up_pool: int = 0                 # net stakes on UP
    down_pool: int = 0               # net stakes on DOWN
    up_fees: int = 0
    down_fees: int = 0
    paid_out: int = 0                # claims paid so far

    @property
    def total_fees(self) -> int:
        return self.up_fees + self.down_fees

    def side_pool(self, side_up: bool) -> int:
        return self.up_pool if side_up else self.down_pool


@dataclass
class Round:
    id: int
    locked_price: int
    created_at: int                  # unix seconds; betting opens (lock time)
    end_time: int                    # betting closes, resolution opens
    pools: dict[str, CurrencyPool]
    up_pool_usd: int = 0
    down_pool_usd: int = 0
    total_fees_usd: int = 0
    outcome: RoundOutcome = RoundOutcome.PENDING
    final_price: int | None = None
    resolved_at: int | None = None
    resolved_by: str | None = None
    fees_collected: bool = False
    closed: bool = False
    updated_at: datetime | None = None

    @property
    def lock_time(self) -> int:
        return self.created_at

    @property
    def is_resolved(self) -> bool:
        return self.outcome != RoundOutcome.PENDING

    def usd_pool(self, side_up: bool) -> int:
        return self.up_pool_usd if side_up else self.down_pool_usd


@dataclass
class Bet:
    round_id: int
    owner: str
    side_up: bool
    currency: str
    amount: int = 0                  # cumulative net stake (what sits in the side pool)
    gross_amount: int = 0            # cumulative amount moved in from the wallet
    fee_paid: int = 0
    usd_value: int = 0               # cumulative USD value of the net stake
    claims: dict[str, int] = field(default_factory=dict)   # currency -> amount paid

    def is_claimed(self, currency: str) -> bool:
        return currency in self.claims


@dataclass(frozen=True)
class ClaimResult:
    currency: str
    entitlement: int                 # owed before clamping
    paid: int                        # actually transferred
