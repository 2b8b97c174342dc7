"""Market registry rules: validation and state transitions, no I/O."""

from src.sc_common.enums import Direction
from src.sc_common.errors import (
    InvalidInputError,
    InvalidPriceError,
    NameTooLongError,
    UnauthorizedError,
)
from src.sc_common.id_generator import entity_id
from src.sc_common.units import saturating_sub
from src.sc_market.domain.models import MAX_NAME_BYTES, Market


def market_id_for(name: str) -> str:
    return entity_id("market", name)


def validate_name(name: str) -> None:
    if not name:
        raise InvalidInputError("market name must not be empty")
    if len(name.encode("utf-8")) > MAX_NAME_BYTES:
        raise NameTooLongError(name, MAX_NAME_BYTES)


def new_market(name: str, initial_price: int, authority: str, now: int) -> Market:
    validate_name(name)
    if initial_price <= 0:
        raise InvalidPriceError(initial_price)
    return Market(
        id=market_id_for(name),
        name=name,
        mark_price=initial_price,
        authority=authority,
        last_price_update=now,
    )


def apply_price_update(market: Market, new_price: int, caller: str, now: int) -> int:
    """Set the mark price; returns the previous one."""
    if new_price <= 0:
        raise InvalidPriceError(new_price)
    if caller != market.authority:
        raise UnauthorizedError(f"{caller} is not the authority of {market.id}")
    old_price = market.mark_price
    market.mark_price = new_price
    market.last_price_update = now
    return old_price


def add_open_interest(market: Market, direction: Direction, collateral: int) -> None:
    if direction == Direction.LONG:
        market.open_interest_long += collateral
    else:
        market.open_interest_short += collateral


def remove_open_interest(market: Market, direction: Direction, collateral: int) -> None:
    if direction == Direction.LONG:
        market.open_interest_long = saturating_sub(market.open_interest_long, collateral)
    else:
        market.open_interest_short = saturating_sub(market.open_interest_short, collateral)
