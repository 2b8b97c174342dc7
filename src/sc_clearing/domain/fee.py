"""Fee calculation: principal x rate (bps), with selectable discount policies.

Two discount shapes exist across instruments:
  RatioDiscount(9, 10)   futures loyalty discount: fee * 9 // 10
  FlatBpsDiscount(20)    pool loyalty currency: rate lowered by 20 bps

Fees are floored, so rounding favours the fee payer by less than one unit.
"""

from dataclasses import dataclass

from src.sc_common.errors import InvalidInputError
from src.sc_common.units import BPS_DENOMINATOR, saturating_sub


@dataclass(frozen=True)
class RatioDiscount:
    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        if self.denominator <= 0 or not (0 <= self.numerator <= self.denominator):
            raise InvalidInputError(
                f"discount ratio must satisfy 0 <= {self.numerator} <= {self.denominator}"
            )

    def apply(self, principal: int, rate_bps: int) -> int:
        base = principal * rate_bps // BPS_DENOMINATOR
        return base * self.numerator // self.denominator


@dataclass(frozen=True)
class FlatBpsDiscount:
    delta_bps: int

    def __post_init__(self) -> None:
        if self.delta_bps < 0:
            raise InvalidInputError(f"discount delta must be >= 0, got {self.delta_bps}")

    def apply(self, principal: int, rate_bps: int) -> int:
        return principal * saturating_sub(rate_bps, self.delta_bps) // BPS_DENOMINATOR


DiscountPolicy = RatioDiscount | FlatBpsDiscount


def calc_fee(principal: int, rate_bps: int, discount: DiscountPolicy | None = None) -> int:
    """Floor fee for principal at rate_bps, optionally discounted.

    Guarantees 0 <= fee <= principal and discounted fee <= standard fee.
    """
    if principal < 0:
        raise InvalidInputError(f"principal must be >= 0, got {principal}")
    if not (0 <= rate_bps <= BPS_DENOMINATOR):
        raise InvalidInputError(f"fee rate must be within 0..{BPS_DENOMINATOR} bps, got {rate_bps}")
    if principal == 0 or rate_bps == 0:
        return 0
    if discount is None:
        return principal * rate_bps // BPS_DENOMINATOR
    return discount.apply(principal, rate_bps)


def net_after_fee(principal: int, fee: int) -> int:
    """Principal minus fee, never negative."""
    return saturating_sub(principal, fee)
