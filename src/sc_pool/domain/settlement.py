"""Round lifecycle rules and parimutuel entitlement.

Pure functions over Round / Bet. The engine loads and persists, moves
custody, and records events.
"""

from src.sc_clearing.domain.fee import FlatBpsDiscount, calc_fee, net_after_fee
from src.sc_clearing.domain.payout import cross_currency_winnings, same_currency_payout
from src.sc_common.enums import RoundOutcome
from src.sc_common.errors import (
    BetBelowMinimumError,
    BetMismatchError,
    InvalidAmountError,
    InvalidInputError,
    InvalidPriceError,
    RoundResolvedError,
    RoundWindowError,
    UnsupportedCurrencyError,
)
from src.sc_common.units import mul_div
from src.sc_pool.domain.models import Bet, CurrencyPool, PoolConfig, Round


def new_round(
    round_id: int, locked_price: int, duration: int, now: int, config: PoolConfig
) -> Round:
    if locked_price <= 0:
        raise InvalidPriceError(locked_price)
    if duration < 0:
        raise InvalidInputError(f"duration must be >= 0, got {duration}")
    if duration == 0:
        duration = config.default_duration_seconds
    return Round(
        id=round_id,
        locked_price=locked_price,
        created_at=now,
        end_time=now + duration,
        pools={c: CurrencyPool(currency=c) for c in config.currencies},
    )


def usd_value_of(amount: int, currency: str, exchange_rate: int | None, config: PoolConfig) -> int:
    """Base currency is 1:1; others need a positive fixed-point rate (10**decimals == 1.0)."""
    if currency == config.base_currency:
        return amount
    if exchange_rate is None or exchange_rate <= 0:
        raise InvalidInputError(f"exchange rate required for {currency}, got {exchange_rate}")
    return mul_div(amount, exchange_rate, 10**config.exchange_rate_decimals)


def entry_fee(amount: int, currency: str, config: PoolConfig) -> int:
    discount = (
        FlatBpsDiscount(config.discount_bps) if currency in config.discount_currencies else None
    )
    return calc_fee(amount, config.entry_fee_bps, discount)


def apply_bet(
    rnd: Round,
    bet: Bet | None,
    owner: str,
    side_up: bool,
    amount: int,
    currency: str,
    exchange_rate: int | None,
    config: PoolConfig,
    now: int,
) -> Bet:
    """Validate a contribution and book it on the round and the bet record.

    Returns the (new or updated) bet. Mutates `rnd` in place.
    """
    if rnd.is_resolved:
        raise RoundResolvedError(rnd.id)
    if now >= rnd.end_time:
        raise RoundWindowError(rnd.id, "betting closed at end time")
    if amount <= 0:
        raise InvalidAmountError(amount)
    if currency not in rnd.pools:
        raise UnsupportedCurrencyError(currency)
    if bet is not None and (bet.side_up != side_up or bet.currency != currency):
        raise BetMismatchError(
            f"existing bet is {'UP' if bet.side_up else 'DOWN'} in {bet.currency}"
        )

    gross_usd = usd_value_of(amount, currency, exchange_rate, config)
    if gross_usd < config.min_bet_usd:
        raise BetBelowMinimumError(gross_usd, config.min_bet_usd)

    fee = entry_fee(amount, currency, config)
    net = net_after_fee(amount, fee)
    net_usd = usd_value_of(net, currency, exchange_rate, config)
    fee_usd = usd_value_of(fee, currency, exchange_rate, config)

    pool = rnd.pools[currency]
    if side_up:
        pool.up_pool += net
        pool.up_fees += fee
        rnd.up_pool_usd += net_usd
    else:
        pool.down_pool += net
        pool.down_fees += fee
        rnd.down_pool_usd += net_usd
    rnd.total_fees_usd += fee_usd

    if bet is None:
        bet = Bet(round_id=rnd.id, owner=owner, side_up=side_up, currency=currency)
    bet.amount += net
    bet.gross_amount += amount
    bet.fee_paid += fee
    bet.usd_value += net_usd
    return bet


def outcome_for(locked_price: int, final_price: int) -> RoundOutcome:
    if final_price > locked_price:
        return RoundOutcome.UP
    if final_price < locked_price:
        return RoundOutcome.DOWN
    return RoundOutcome.DRAW


def resolve_round(rnd: Round, final_price: int, caller: str, now: int) -> RoundOutcome:
    if rnd.is_resolved:
        raise RoundResolvedError(rnd.id)
    if now < rnd.end_time:
        raise RoundWindowError(rnd.id, f"cannot resolve before end time {rnd.end_time}")
    if final_price <= 0:
        raise InvalidPriceError(final_price)
    rnd.final_price = final_price
    rnd.outcome = outcome_for(rnd.locked_price, final_price)
    rnd.resolved_at = now
    rnd.resolved_by = caller
    return rnd.outcome


def bet_entitlement(rnd: Round, bet: Bet, currency: str, currency_count: int) -> int:
    """What `bet` is owed from `currency`'s custody on a resolved round (before clamping)."""
    if not rnd.is_resolved or currency not in rnd.pools:
        return 0
    own_currency = currency == bet.currency

    if rnd.outcome == RoundOutcome.DRAW:
        return bet.amount if own_currency else 0

    winning_up = rnd.outcome == RoundOutcome.UP
    if bet.side_up != winning_up:
        return 0

    pool = rnd.pools[currency]
    losing = pool.side_pool(not winning_up)

    if currency_count <= 1:
        if not own_currency:
            return 0
        return same_currency_payout(bet.amount, losing, pool.side_pool(winning_up))

    winning_usd = rnd.usd_pool(winning_up)
    winnings = cross_currency_winnings(bet.usd_value, losing, winning_usd)
    if own_currency:
        return bet.amount + winnings
    return winnings


def claim_window_open(rnd: Round, config: PoolConfig, now: int) -> bool:
    return now < rnd.end_time + config.claim_window_seconds
