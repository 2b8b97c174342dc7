"""CustodyApplicationService: simulated funding and balance reads.

Deposit and withdraw run in a unit of work (commit or roll back).
Reads run without an explicit transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_common.database import unit_of_work
from src.sc_common.enums import CustodyEntryType
from src.sc_common.errors import UnsupportedCurrencyError
from src.sc_common.units import amount_to_display
from src.sc_custody.application.schemas import (
    AssetBalance,
    BalanceResponse,
    CustodyEntryItem,
    EntriesResponse,
    FundingResponse,
    cursor_decode,
    cursor_encode,
)
from src.sc_custody.domain.models import wallet_bucket
from src.sc_custody.domain.repository import CustodyRepositoryProtocol
from src.sc_custody.infrastructure.persistence import CustodyRepository


def supported_assets() -> set[str]:
    pool = {c.strip() for c in settings.POOL_CURRENCIES.split(",") if c.strip()}
    return pool | {settings.FUTURES_COLLATERAL_ASSET}


class CustodyApplicationService:
    def __init__(self, repo: CustodyRepositoryProtocol | None = None) -> None:
        self._repo: CustodyRepositoryProtocol = repo or CustodyRepository()

    def _check_asset(self, asset: str) -> None:
        if asset not in supported_assets():
            raise UnsupportedCurrencyError(asset)

    async def get_balance(self, db: AsyncSession, owner: str) -> BalanceResponse:
        bucket = wallet_bucket(owner)
        accounts = await self._repo.list_accounts(db, bucket)
        return BalanceResponse(
            owner=owner,
            bucket=bucket,
            balances=[AssetBalance.from_account(a) for a in accounts],
        )

    async def deposit(
        self, db: AsyncSession, owner: str, asset: str, amount: int
    ) -> FundingResponse:
        self._check_asset(asset)
        async with unit_of_work(db):
            entry = await self._repo.credit(
                db,
                wallet_bucket(owner),
                asset,
                amount,
                CustodyEntryType.DEPOSIT.value,
                "DEPOSIT",
                None,
                "Simulated deposit",
            )
        return FundingResponse(
            asset=asset,
            amount=amount,
            balance=entry.balance_after,
            balance_display=amount_to_display(entry.balance_after),
        )

    async def withdraw(
        self, db: AsyncSession, owner: str, asset: str, amount: int
    ) -> FundingResponse:
        self._check_asset(asset)
        async with unit_of_work(db):
            entry = await self._repo.debit(
                db,
                wallet_bucket(owner),
                asset,
                amount,
                CustodyEntryType.WITHDRAW.value,
                "WITHDRAW",
                None,
                "Simulated withdrawal",
            )
        return FundingResponse(
            asset=asset,
            amount=amount,
            balance=entry.balance_after,
            balance_display=amount_to_display(entry.balance_after),
        )

    async def list_entries(
        self,
        db: AsyncSession,
        owner: str,
        cursor: str | None,
        limit: int,
        asset: str | None,
    ) -> EntriesResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(
            db, wallet_bucket(owner), cursor_id, limit + 1, asset
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return EntriesResponse(
            items=[CustodyEntryItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
