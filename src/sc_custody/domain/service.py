"""Custody primitive used by the futures and pool engines.

Runs inside the caller's transaction. `transfer` is strict (raises on a
short balance); `pay_out` is the settlement path and clamps to whatever
the source bucket actually holds.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_clearing.domain.payout import clamp_to_balance
from src.sc_common.enums import CustodyEntryType
from src.sc_common.errors import InvalidAmountError
from src.sc_custody.domain.repository import CustodyRepositoryProtocol


class Custody:
    def __init__(self, repo: CustodyRepositoryProtocol) -> None:
        self._repo = repo

    async def balance(self, db: AsyncSession, bucket: str, asset: str) -> int:
        return await self._repo.get_balance(db, bucket, asset)

    async def credit(
        self,
        db: AsyncSession,
        bucket: str,
        asset: str,
        amount: int,
        entry_type: CustodyEntryType = CustodyEntryType.TRANSFER_IN,
        ref_type: str | None = None,
        ref_id: str | None = None,
        description: str | None = None,
    ) -> None:
        if amount <= 0:
            raise InvalidAmountError(amount)
        await self._repo.credit(
            db, bucket, asset, amount, entry_type.value, ref_type, ref_id, description
        )

    async def debit(
        self,
        db: AsyncSession,
        bucket: str,
        asset: str,
        amount: int,
        entry_type: CustodyEntryType = CustodyEntryType.TRANSFER_OUT,
        ref_type: str | None = None,
        ref_id: str | None = None,
        description: str | None = None,
    ) -> None:
        if amount <= 0:
            raise InvalidAmountError(amount)
        await self._repo.debit(
            db, bucket, asset, amount, entry_type.value, ref_type, ref_id, description
        )

    async def transfer(
        self,
        db: AsyncSession,
        source: str,
        destination: str,
        asset: str,
        amount: int,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> None:
        """Move exactly `amount`; InsufficientFundsError if source is short."""
        if amount == 0:
            return
        description = f"{source} -> {destination}"
        await self.debit(
            db, source, asset, amount, CustodyEntryType.TRANSFER_OUT, ref_type, ref_id, description
        )
        await self.credit(
            db,
            destination,
            asset,
            amount,
            CustodyEntryType.TRANSFER_IN,
            ref_type,
            ref_id,
            description,
        )

    async def pay_out(
        self,
        db: AsyncSession,
        source: str,
        destination: str,
        asset: str,
        amount: int,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> int:
        """Move up to `amount`, clamped to the locked source balance. Returns amount moved."""
        available = await self._repo.get_balance(db, source, asset, for_update=True)
        actual = clamp_to_balance(amount, available)
        await self.transfer(db, source, destination, asset, actual, ref_type, ref_id)
        return actual

    async def sweep(
        self,
        db: AsyncSession,
        source: str,
        destination: str,
        asset: str,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> int:
        """Move the entire source balance. Returns amount moved."""
        available = await self._repo.get_balance(db, source, asset, for_update=True)
        await self.transfer(db, source, destination, asset, available, ref_type, ref_id)
        return available
