"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_market.domain.models import Market


class MarketRepositoryProtocol(Protocol):
    async def get_market_by_id(
        self, db: AsyncSession, market_id: str, *, for_update: bool = False
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]: ...

    async def insert_market(self, db: AsyncSession, market: Market) -> Market: ...

    async def save_market(self, db: AsyncSession, market: Market) -> None: ...
