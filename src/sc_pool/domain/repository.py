"""Repository Protocol: dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_pool.domain.models import Bet, Round


class RoundRepositoryProtocol(Protocol):
    async def get_round(
        self, db: AsyncSession, round_id: int, *, for_update: bool = False
    ) -> Round | None: ...

    async def list_rounds(self, db: AsyncSession, limit: int) -> list[Round]: ...

    async def insert_round(self, db: AsyncSession, rnd: Round) -> None: ...

    async def save_round(self, db: AsyncSession, rnd: Round) -> None: ...

    async def get_bet(
        self, db: AsyncSession, round_id: int, owner: str, *, for_update: bool = False
    ) -> Bet | None: ...

    async def save_bet(self, db: AsyncSession, bet: Bet) -> None: ...

    async def record_claim(
        self, db: AsyncSession, round_id: int, owner: str, currency: str, amount: int
    ) -> None: ...
