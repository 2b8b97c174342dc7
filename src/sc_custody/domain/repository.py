"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_custody.domain.models import CustodyAccount, CustodyEntry


class CustodyRepositoryProtocol(Protocol):
    async def get_balance(
        self, db: AsyncSession, bucket: str, asset: str, *, for_update: bool = False
    ) -> int: ...

    async def list_accounts(self, db: AsyncSession, bucket: str) -> list[CustodyAccount]: ...

    async def credit(
        self,
        db: AsyncSession,
        bucket: str,
        asset: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None,
    ) -> CustodyEntry: ...

    async def debit(
        self,
        db: AsyncSession,
        bucket: str,
        asset: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None,
    ) -> CustodyEntry: ...

    async def list_entries(
        self,
        db: AsyncSession,
        bucket: str,
        cursor_id: int | None,
        limit: int,
        asset: str | None,
    ) -> list[CustodyEntry]: ...
