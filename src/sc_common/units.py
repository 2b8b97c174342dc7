"""Integer arithmetic utilities for fixed-point settlement amounts.

All prices, stakes, and balances are int in the smallest unit of their asset.
No float, no Decimal. Python ints never overflow, so "widened" multiplication
is the plain product; divisions always floor unless noted.
"""

BPS_DENOMINATOR = 10_000


def saturating_sub(a: int, b: int) -> int:
    """a - b, floored at zero (unsigned subtraction semantics)."""
    return a - b if a > b else 0


def mul_div(a: int, b: int, denominator: int) -> int:
    """Floor of a * b / denominator; 0 when the denominator is 0."""
    if denominator == 0:
        return 0
    return (a * b) // denominator


def mul_div_trunc(a: int, b: int, denominator: int) -> int:
    """a * b / denominator truncated toward zero (signed integer division)."""
    if denominator == 0:
        return 0
    q = abs(a * b) // abs(denominator)
    return q if (a * b) * denominator >= 0 else -q


def round_half_up_div(a: int, denominator: int) -> int:
    """a / denominator rounded half away from zero."""
    q, r = divmod(abs(a), denominator)
    if 2 * r >= denominator:
        q += 1
    return q if a >= 0 else -q


def amount_to_display(amount: int, decimals: int = 6) -> str:
    """Render a fixed-point amount: 1_500_000 (6 dp) -> '1.500000'."""
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole:,}"
    return f"{sign}{whole:,}.{frac:0{decimals}d}"
