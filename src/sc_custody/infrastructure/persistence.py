"""CustodyRepository: concrete implementation of CustodyRepositoryProtocol.

Balance mutations are single atomic PostgreSQL statements with RETURNING.
A debit that matches 0 rows means the bucket would go negative.

Transaction ownership: the CALLER (engine or application service) owns the
transaction; nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.errors import InsufficientFundsError, InternalError
from src.sc_custody.domain.models import CustodyAccount, CustodyEntry

_CREDIT_SQL = text("""
    INSERT INTO custody_accounts (bucket, asset, balance)
    VALUES (:bucket, :asset, :amount)
    ON CONFLICT (bucket, asset) DO UPDATE
        SET balance = custody_accounts.balance + EXCLUDED.balance,
            version = custody_accounts.version + 1,
            updated_at = NOW()
    RETURNING bucket, asset, balance, version, created_at, updated_at
""")

_DEBIT_SQL = text("""
    UPDATE custody_accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE bucket = :bucket AND asset = :asset AND balance >= :amount
    RETURNING bucket, asset, balance, version, created_at, updated_at
""")

_GET_BALANCE_SQL = text("""
    SELECT balance FROM custody_accounts
    WHERE bucket = :bucket AND asset = :asset
""")

_GET_BALANCE_FOR_UPDATE_SQL = text("""
    SELECT balance FROM custody_accounts
    WHERE bucket = :bucket AND asset = :asset
    FOR UPDATE
""")

_LIST_ACCOUNTS_SQL = text("""
    SELECT bucket, asset, balance, version, created_at, updated_at
    FROM custody_accounts
    WHERE bucket = :bucket
    ORDER BY asset
""")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO custody_entries
        (bucket, asset, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:bucket, :asset, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, bucket, asset, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, bucket, asset, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM custody_entries
    WHERE bucket = :bucket
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:asset AS VARCHAR) IS NULL OR asset = :asset)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> CustodyAccount:
    return CustodyAccount(
        bucket=row.bucket,  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> CustodyEntry:
    return CustodyEntry(
        id=row.id,  # type: ignore[attr-defined]
        bucket=row.bucket,  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class CustodyRepository:
    """Concrete repository: every balance change is atomic at the SQL level."""

    async def get_balance(
        self, db: AsyncSession, bucket: str, asset: str, *, for_update: bool = False
    ) -> int:
        sql = _GET_BALANCE_FOR_UPDATE_SQL if for_update else _GET_BALANCE_SQL
        result = await db.execute(sql, {"bucket": bucket, "asset": asset})
        row = result.fetchone()
        return row.balance if row else 0

    async def list_accounts(self, db: AsyncSession, bucket: str) -> list[CustodyAccount]:
        result = await db.execute(_LIST_ACCOUNTS_SQL, {"bucket": bucket})
        return [_row_to_account(r) for r in result.fetchall()]

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
    ) -> CustodyEntry:
        result = await db.execute(
            _CREDIT_SQL, {"bucket": bucket, "asset": asset, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Custody credit returned no rows for {bucket}/{asset}")
        account = _row_to_account(row)
        return await self._append_entry(
            db, account, entry_type, amount, ref_type, ref_id, description
        )

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
    ) -> CustodyEntry:
        result = await db.execute(
            _DEBIT_SQL, {"bucket": bucket, "asset": asset, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            available = await self.get_balance(db, bucket, asset)
            raise InsufficientFundsError(bucket, amount, available)
        account = _row_to_account(row)
        return await self._append_entry(
            db, account, entry_type, -amount, ref_type, ref_id, description
        )

    async def list_entries(
        self,
        db: AsyncSession,
        bucket: str,
        cursor_id: int | None,
        limit: int,
        asset: str | None,
    ) -> list[CustodyEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {"bucket": bucket, "cursor_id": cursor_id, "limit": limit, "asset": asset},
        )
        return [_row_to_entry(r) for r in result.fetchall()]

    async def _append_entry(
        self,
        db: AsyncSession,
        account: CustodyAccount,
        entry_type: str,
        signed_amount: int,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None,
    ) -> CustodyEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "bucket": account.bucket,
                "asset": account.asset,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": account.balance,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("custody entry insert returned no rows")
        return _row_to_entry(row)
