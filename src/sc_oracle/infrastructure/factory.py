"""Select the price oracle configured for this deployment."""

import logging

from config.settings import settings
from src.sc_oracle.domain.models import PriceOracleProtocol
from src.sc_oracle.infrastructure.hermes import HermesPriceOracle
from src.sc_oracle.infrastructure.manual import ManualPriceOracle

logger = logging.getLogger(__name__)


def build_price_oracle(source: str | None = None) -> PriceOracleProtocol:
    """ORACLE_SOURCE=manual pins ORACLE_MANUAL_PRICE (local dev, no network)."""
    source = (source or settings.ORACLE_SOURCE).lower()
    if source == "hermes":
        return HermesPriceOracle()
    if source == "manual":
        logger.warning("Using manual price oracle at %d", settings.ORACLE_MANUAL_PRICE)
        return ManualPriceOracle(
            settings.ORACLE_MANUAL_PRICE, exponent=-settings.ORACLE_PRICE_DECIMALS
        )
    raise ValueError(f"unknown ORACLE_SOURCE {source!r}")
