"""Settlement allocator: pure payout math shared by futures and pools.

Every function takes and returns ints in the smallest unit of the asset.
Products are formed before division (ints are unbounded), and every
division floors, so rounding residue stays in custody.
"""

from dataclasses import dataclass

from src.sc_common.enums import Direction
from src.sc_common.units import BPS_DENOMINATOR, mul_div, mul_div_trunc, saturating_sub


# ---------------------------------------------------------------------------
# Futures
# ---------------------------------------------------------------------------


def price_delta(direction: Direction, entry_price: int, current_price: int) -> int:
    """Signed price move in the position's favour."""
    if direction == Direction.LONG:
        return current_price - entry_price
    return entry_price - current_price


def directional_pnl(
    direction: Direction, entry_price: int, current_price: int, collateral: int
) -> int:
    """pnl = delta * collateral / entry_price, truncated toward zero."""
    return mul_div_trunc(
        price_delta(direction, entry_price, current_price), collateral, entry_price
    )


def close_payout(collateral: int, pnl: int) -> int:
    """Collateral plus PnL, floored at zero; losses never exceed collateral."""
    if pnl >= 0:
        return collateral + pnl
    return collateral - min(-pnl, collateral)


def loss_bps(direction: Direction, entry_price: int, current_price: int) -> int:
    """Adverse move in bps of entry price; 0 when the move is flat or favourable."""
    delta = price_delta(direction, entry_price, current_price)
    if delta >= 0:
        return 0
    return mul_div(-delta, BPS_DENOMINATOR, entry_price)


def liquidator_reward(collateral: int, reward_bps: int) -> int:
    return mul_div(collateral, reward_bps, BPS_DENOMINATOR)


# ---------------------------------------------------------------------------
# Parimutuel
# ---------------------------------------------------------------------------


def same_currency_payout(stake: int, losing_pool: int, winning_pool: int) -> int:
    """Classic parimutuel: stake + stake * losing / winning.

    With an empty winning pool there is nothing to share pro rata; the
    losing side's stakes are not claimable through this path.
    """
    if winning_pool <= 0:
        return 0
    return stake + mul_div(stake, losing_pool, winning_pool)


def cross_currency_winnings(
    usd_value: int, losing_pool_other: int, winning_usd_total: int
) -> int:
    """USD-proportional share of another currency's losing pool."""
    if winning_usd_total <= 0:
        return 0
    return mul_div(usd_value, losing_pool_other, winning_usd_total)


def clamp_to_balance(amount: int, balance: int) -> int:
    """Never move more than custody holds, never a negative amount."""
    return max(min(amount, balance), 0)


@dataclass(frozen=True)
class PayoutSplit:
    """How a clamped payout is sourced across two custody buckets."""

    primary: int
    secondary: int

    @property
    def total(self) -> int:
        return self.primary + self.secondary


def split_payout(amount: int, primary_balance: int, secondary_balance: int) -> PayoutSplit:
    """Take from primary first, top up from secondary, never beyond either."""
    primary = clamp_to_balance(amount, primary_balance)
    secondary = clamp_to_balance(saturating_sub(amount, primary), secondary_balance)
    return PayoutSplit(primary=primary, secondary=secondary)
