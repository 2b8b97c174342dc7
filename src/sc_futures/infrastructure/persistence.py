"""PositionRepository: raw SQL over the positions table.

Transaction ownership: the engine's savepoint / the application service.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.enums import Direction, PositionStatus
from src.sc_common.errors import DuplicateEntityError
from src.sc_futures.domain.models import Position

_COLUMNS = """
    id, owner, market_id, nonce, direction, status,
    deposit, fee_paid, collateral, entry_price, opened_at,
    exit_price, realized_pnl, payout, closed_by, closed_at,
    created_at, updated_at
"""

_GET_SQL = text(f"SELECT {_COLUMNS} FROM positions WHERE id = :id")

_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM positions WHERE id = :id FOR UPDATE")

_INSERT_SQL = text(f"""
    INSERT INTO positions
        (id, owner, market_id, nonce, direction, status,
         deposit, fee_paid, collateral, entry_price, opened_at)
    VALUES
        (:id, :owner, :market_id, :nonce, :direction, :status,
         :deposit, :fee_paid, :collateral, :entry_price, :opened_at)
    ON CONFLICT (id) DO NOTHING
    RETURNING {_COLUMNS}
""")

_SAVE_SQL = text("""
    UPDATE positions
    SET status = :status,
        exit_price = :exit_price,
        realized_pnl = :realized_pnl,
        payout = :payout,
        closed_by = :closed_by,
        closed_at = :closed_at,
        updated_at = NOW()
    WHERE id = :id
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE (CAST(:owner AS TEXT) IS NULL OR owner = CAST(:owner AS TEXT))
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = CAST(:market_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY opened_at DESC, id DESC
    LIMIT :limit
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE market_id = :market_id AND status = 'OPEN'
    ORDER BY opened_at ASC
""")


def _row_to_position(row: object) -> Position:
    return Position(
        id=row.id,  # type: ignore[attr-defined]
        owner=row.owner,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        nonce=row.nonce,  # type: ignore[attr-defined]
        direction=Direction(row.direction),  # type: ignore[attr-defined]
        status=PositionStatus(row.status),  # type: ignore[attr-defined]
        deposit=row.deposit,  # type: ignore[attr-defined]
        fee_paid=row.fee_paid,  # type: ignore[attr-defined]
        collateral=row.collateral,  # type: ignore[attr-defined]
        entry_price=row.entry_price,  # type: ignore[attr-defined]
        opened_at=row.opened_at,  # type: ignore[attr-defined]
        exit_price=row.exit_price,  # type: ignore[attr-defined]
        realized_pnl=row.realized_pnl,  # type: ignore[attr-defined]
        payout=row.payout,  # type: ignore[attr-defined]
        closed_by=row.closed_by,  # type: ignore[attr-defined]
        closed_at=row.closed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PositionRepository:
    async def get_position(
        self, db: AsyncSession, position_id: str, *, for_update: bool = False
    ) -> Position | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"id": position_id})).fetchone()
        return _row_to_position(row) if row else None

    async def insert_position(self, db: AsyncSession, position: Position) -> Position:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": position.id,
                "owner": position.owner,
                "market_id": position.market_id,
                "nonce": position.nonce,
                "direction": position.direction.value,
                "status": position.status.value,
                "deposit": position.deposit,
                "fee_paid": position.fee_paid,
                "collateral": position.collateral,
                "entry_price": position.entry_price,
                "opened_at": position.opened_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise DuplicateEntityError(f"position {position.id}")
        return _row_to_position(row)

    async def save_position(self, db: AsyncSession, position: Position) -> None:
        await db.execute(
            _SAVE_SQL,
            {
                "id": position.id,
                "status": position.status.value,
                "exit_price": position.exit_price,
                "realized_pnl": position.realized_pnl,
                "payout": position.payout,
                "closed_by": position.closed_by,
                "closed_at": position.closed_at,
            },
        )

    async def list_positions(
        self,
        db: AsyncSession,
        owner: str | None,
        market_id: str | None,
        status: str | None,
        limit: int,
    ) -> list[Position]:
        result = await db.execute(
            _LIST_SQL,
            {"owner": owner, "market_id": market_id, "status": status, "limit": limit},
        )
        return [_row_to_position(r) for r in result.fetchall()]

    async def list_open_positions(self, db: AsyncSession, market_id: str) -> list[Position]:
        result = await db.execute(_LIST_OPEN_SQL, {"market_id": market_id})
        return [_row_to_position(r) for r in result.fetchall()]
