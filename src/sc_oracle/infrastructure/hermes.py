"""Pyth Hermes adapter: latest price for one feed over HTTPS.

Response shape (trimmed):
    {"parsed": [{"id": "...", "price": {"price": "14523456789", "conf": "...",
                 "expo": -8, "publish_time": 1718000000}}]}
"""

import logging

import httpx

from config.settings import settings
from src.sc_common.errors import OracleUnavailableError
from src.sc_oracle.domain.models import OracleQuote

logger = logging.getLogger(__name__)


class HermesPriceOracle:
    def __init__(
        self,
        feed_id: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._feed_id = feed_id or settings.ORACLE_FEED_ID
        self._url = url or settings.ORACLE_HERMES_URL
        self._timeout = timeout if timeout is not None else settings.ORACLE_TIMEOUT_SECONDS
        self._client = client

    async def latest(self) -> OracleQuote:
        params = {"ids[]": self._feed_id}
        try:
            if self._client is not None:
                resp = await self._client.get(self._url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(self._url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Hermes request failed for feed %s: %s", self._feed_id, exc)
            raise OracleUnavailableError(f"price feed request failed: {exc}") from exc
        return parse_hermes_payload(data)


def parse_hermes_payload(data: object) -> OracleQuote:
    try:
        price = data["parsed"][0]["price"]  # type: ignore[index]
        return OracleQuote(
            price=int(price["price"]),
            exponent=int(price["expo"]),
            as_of=int(price["publish_time"]),
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise OracleUnavailableError("malformed price feed payload") from exc
