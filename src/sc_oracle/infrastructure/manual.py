"""Fixed-quote oracle: local dev without network access, and tests."""

from src.sc_common.datetime_utils import unix_now
from src.sc_oracle.domain.models import OracleQuote


class ManualPriceOracle:
    def __init__(self, price: int, exponent: int = -2, as_of: int | None = None) -> None:
        self._price = price
        self._exponent = exponent
        self._as_of = as_of

    def set_price(self, price: int, as_of: int | None = None) -> None:
        self._price = price
        self._as_of = as_of

    async def latest(self) -> OracleQuote:
        as_of = self._as_of if self._as_of is not None else unix_now()
        return OracleQuote(price=self._price, exponent=self._exponent, as_of=as_of)
