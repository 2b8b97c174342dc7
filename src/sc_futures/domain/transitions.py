"""Position lifecycle: OPEN -> CLOSED (owner) or OPEN -> LIQUIDATED (anyone).

Pure functions over domain objects. They validate, compute, and mutate the
in-memory Position / Market; the engine persists and moves custody.
"""

from src.sc_clearing.domain.fee import DiscountPolicy, calc_fee, net_after_fee
from src.sc_clearing.domain.payout import (
    close_payout,
    directional_pnl,
    liquidator_reward,
    loss_bps,
)
from src.sc_common.enums import Direction, PositionStatus
from src.sc_common.errors import (
    InvalidAmountError,
    InvalidDirectionError,
    NotLiquidatableError,
    PositionClosedError,
    UnauthorizedError,
)
from src.sc_common.id_generator import entity_id
from src.sc_futures.domain.models import CloseQuote, LiquidationQuote, Position
from src.sc_market.domain.models import Market
from src.sc_market.domain.registry import add_open_interest, remove_open_interest


def parse_direction(value: object) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).upper())
    except ValueError:
        raise InvalidDirectionError(value) from None


def position_id_for(owner: str, market_id: str, nonce: int) -> str:
    return entity_id("position", owner, market_id, nonce)


def open_position(
    market: Market,
    owner: str,
    direction: Direction,
    deposit: int,
    nonce: int,
    fee_bps: int,
    discount: DiscountPolicy | None,
    now: int,
) -> Position:
    """Build an OPEN position at the current mark price and book OI / fees on the market."""
    if deposit <= 0:
        raise InvalidAmountError(deposit)
    fee = calc_fee(deposit, fee_bps, discount)
    collateral = net_after_fee(deposit, fee)
    if collateral <= 0:
        raise InvalidAmountError(deposit)

    add_open_interest(market, direction, collateral)
    market.total_fees_collected += fee

    return Position(
        id=position_id_for(owner, market.id, nonce),
        owner=owner,
        market_id=market.id,
        nonce=nonce,
        direction=direction,
        status=PositionStatus.OPEN,
        deposit=deposit,
        fee_paid=fee,
        collateral=collateral,
        entry_price=market.mark_price,
        opened_at=now,
    )


def _ensure_open(position: Position) -> None:
    if not position.is_open:
        raise PositionClosedError(position.id)


def quote_close(position: Position, current_price: int) -> CloseQuote:
    pnl = directional_pnl(
        position.direction, position.entry_price, current_price, position.collateral
    )
    return CloseQuote(pnl=pnl, payout=close_payout(position.collateral, pnl))


def close_position(position: Position, market: Market, caller: str, now: int) -> CloseQuote:
    """Owner-only close at the market's mark price."""
    if caller != position.owner:
        raise UnauthorizedError(f"{caller} does not own position {position.id}")
    _ensure_open(position)
    quote = quote_close(position, market.mark_price)

    position.status = PositionStatus.CLOSED
    position.exit_price = market.mark_price
    position.realized_pnl = quote.pnl
    position.closed_by = caller
    position.closed_at = now
    remove_open_interest(market, position.direction, position.collateral)
    return quote


def quote_liquidation(
    position: Position, current_price: int, threshold_bps: int, reward_bps: int
) -> LiquidationQuote:
    """Raise NotLiquidatableError unless the adverse move reaches threshold_bps."""
    loss = loss_bps(position.direction, position.entry_price, current_price)
    if loss == 0 or loss < threshold_bps:
        raise NotLiquidatableError(position.id, loss)
    return LiquidationQuote(
        loss_bps=loss, reward=liquidator_reward(position.collateral, reward_bps)
    )


def liquidate_position(
    position: Position,
    market: Market,
    liquidator: str,
    threshold_bps: int,
    reward_bps: int,
    now: int,
) -> LiquidationQuote:
    _ensure_open(position)
    quote = quote_liquidation(position, market.mark_price, threshold_bps, reward_bps)

    position.status = PositionStatus.LIQUIDATED
    position.exit_price = market.mark_price
    position.realized_pnl = -position.collateral
    position.closed_by = liquidator
    position.closed_at = now
    remove_open_interest(market, position.direction, position.collateral)
    return quote
