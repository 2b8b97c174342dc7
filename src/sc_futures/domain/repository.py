"""Repository Protocol: dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_futures.domain.models import Position


class PositionRepositoryProtocol(Protocol):
    async def get_position(
        self, db: AsyncSession, position_id: str, *, for_update: bool = False
    ) -> Position | None: ...

    async def insert_position(self, db: AsyncSession, position: Position) -> Position: ...

    async def save_position(self, db: AsyncSession, position: Position) -> None: ...

    async def list_positions(
        self,
        db: AsyncSession,
        owner: str | None,
        market_id: str | None,
        status: str | None,
        limit: int,
    ) -> list[Position]: ...

    async def list_open_positions(self, db: AsyncSession, market_id: str) -> list[Position]: ...
