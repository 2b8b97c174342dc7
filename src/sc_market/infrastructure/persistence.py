"""MarketRepository: concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.errors import DuplicateEntityError
from src.sc_market.domain.models import Market

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, name, mark_price, authority, last_price_update,
    open_interest_long, open_interest_short, total_fees_collected,
    created_at, updated_at
"""

_GET_MARKET_SQL = text(f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id")

_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE"
)

_LIST_MARKETS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE
        CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
        OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
        OR (
            created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
            AND id < CAST(:cursor_id AS TEXT)
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO markets
        (id, name, mark_price, authority, last_price_update,
         open_interest_long, open_interest_short, total_fees_collected)
    VALUES
        (:id, :name, :mark_price, :authority, :last_price_update, 0, 0, 0)
    ON CONFLICT (id) DO NOTHING
    RETURNING {_COLUMNS}
""")

_SAVE_MARKET_SQL = text("""
    UPDATE markets
    SET mark_price = :mark_price,
        last_price_update = :last_price_update,
        open_interest_long = :open_interest_long,
        open_interest_short = :open_interest_short,
        total_fees_collected = :total_fees_collected,
        updated_at = NOW()
    WHERE id = :id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: object) -> Market:
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        mark_price=row.mark_price,  # type: ignore[attr-defined]
        authority=row.authority,  # type: ignore[attr-defined]
        last_price_update=row.last_price_update,  # type: ignore[attr-defined]
        open_interest_long=row.open_interest_long,  # type: ignore[attr-defined]
        open_interest_short=row.open_interest_short,  # type: ignore[attr-defined]
        total_fees_collected=row.total_fees_collected,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class MarketRepository:
    async def get_market_by_id(
        self, db: AsyncSession, market_id: str, *, for_update: bool = False
    ) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        row = (await db.execute(sql, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]:
        result = await db.execute(
            _LIST_MARKETS_SQL,
            {"cursor_ts": cursor_ts, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_market(r) for r in result.fetchall()]

    async def insert_market(self, db: AsyncSession, market: Market) -> Market:
        result = await db.execute(
            _INSERT_MARKET_SQL,
            {
                "id": market.id,
                "name": market.name,
                "mark_price": market.mark_price,
                "authority": market.authority,
                "last_price_update": market.last_price_update,
            },
        )
        row = result.fetchone()
        if row is None:
            raise DuplicateEntityError(f"market {market.name!r}")
        return _row_to_market(row)

    async def save_market(self, db: AsyncSession, market: Market) -> None:
        await db.execute(
            _SAVE_MARKET_SQL,
            {
                "id": market.id,
                "mark_price": market.mark_price,
                "last_price_update": market.last_price_update,
                "open_interest_long": market.open_interest_long,
                "open_interest_short": market.open_interest_short,
                "total_fees_collected": market.total_fees_collected,
            },
        )
