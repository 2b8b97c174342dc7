"""Oracle quotes and the rules every consumer applies before trusting one.

Prices arrive as (mantissa, exponent) pairs, e.g. Pyth SOL/USD
price=14523456789 expo=-8. Settlement works in a fixed target scale
(cents by default), so quotes are normalized with round-half-up.
"""

from dataclasses import dataclass
from typing import Protocol

from src.sc_common.errors import OracleUnavailableError
from src.sc_common.units import round_half_up_div


@dataclass(frozen=True)
class OracleQuote:
    price: int          # mantissa
    exponent: int       # value = price * 10**exponent
    as_of: int          # publish time, unix seconds


class PriceOracleProtocol(Protocol):
    async def latest(self) -> OracleQuote: ...


def normalize_price(price: int, exponent: int, decimals: int = 2) -> int:
    """Rescale mantissa * 10**exponent to an int with `decimals` places.

    normalize_price(14523456789, -8, 2) == 14523   # $145.23
    """
    shift = exponent + decimals
    if shift >= 0:
        return price * 10**shift
    return round_half_up_div(price, 10**-shift)


DEFAULT_MAX_CLOCK_SKEW = 5  # seconds a publish time may run ahead of the local clock


def ensure_fresh(
    quote: OracleQuote, now: int, max_age: int, max_skew: int = DEFAULT_MAX_CLOCK_SKEW
) -> None:
    """Fail closed on a quote older than max_age, or further ahead than max_skew."""
    if quote.as_of - now > max_skew:
        raise OracleUnavailableError(f"quote published in the future ({quote.as_of} > {now})")
    age = now - quote.as_of
    if age > max_age:
        raise OracleUnavailableError(f"quote is {age}s old, max {max_age}s")


def settle_price(
    quote: OracleQuote,
    now: int,
    max_age: int,
    decimals: int = 2,
    max_skew: int = DEFAULT_MAX_CLOCK_SKEW,
) -> int:
    """Fresh, normalized, strictly positive settlement price."""
    ensure_fresh(quote, now, max_age, max_skew)
    price = normalize_price(quote.price, quote.exponent, decimals)
    if price <= 0:
        raise OracleUnavailableError(f"non-positive price {price}")
    return price
