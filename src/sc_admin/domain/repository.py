from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_admin.domain.models import ProtocolConfig


class ProtocolConfigRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession) -> ProtocolConfig: ...

    async def set_paused(self, db: AsyncSession, paused: bool) -> ProtocolConfig: ...

    async def set_treasury(self, db: AsyncSession, treasury: str) -> ProtocolConfig: ...

    async def allocate_round_id(self, db: AsyncSession) -> int: ...
