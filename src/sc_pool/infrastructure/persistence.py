"""RoundRepository: raw SQL over rounds / round_pools / user_bets / bet_claims.

Transaction ownership: the engine's savepoint / the application service.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.enums import RoundOutcome
from src.sc_common.errors import AlreadyClaimedError, DuplicateEntityError
from src.sc_pool.domain.models import Bet, CurrencyPool, Round

# ---------------------------------------------------------------------------
# SQL: rounds
# ---------------------------------------------------------------------------

_ROUND_COLUMNS = """
    id, locked_price, created_at, end_time,
    up_pool_usd, down_pool_usd, total_fees_usd,
    outcome, final_price, resolved_at, resolved_by,
    fees_collected, closed, updated_at
"""

_GET_ROUND_SQL = text(f"SELECT {_ROUND_COLUMNS} FROM rounds WHERE id = :id")

_GET_ROUND_FOR_UPDATE_SQL = text(f"SELECT {_ROUND_COLUMNS} FROM rounds WHERE id = :id FOR UPDATE")

_LIST_ROUNDS_SQL = text(f"SELECT {_ROUND_COLUMNS} FROM rounds ORDER BY id DESC LIMIT :limit")

_INSERT_ROUND_SQL = text("""
    INSERT INTO rounds (id, locked_price, created_at, end_time, outcome)
    VALUES (:id, :locked_price, :created_at, :end_time, :outcome)
    ON CONFLICT (id) DO NOTHING
    RETURNING id
""")

_SAVE_ROUND_SQL = text("""
    UPDATE rounds
    SET up_pool_usd = :up_pool_usd,
        down_pool_usd = :down_pool_usd,
        total_fees_usd = :total_fees_usd,
        outcome = :outcome,
        final_price = :final_price,
        resolved_at = :resolved_at,
        resolved_by = :resolved_by,
        fees_collected = :fees_collected,
        closed = :closed,
        updated_at = NOW()
    WHERE id = :id
""")

_GET_POOLS_SQL = text("""
    SELECT currency, up_pool, down_pool, up_fees, down_fees, paid_out
    FROM round_pools
    WHERE round_id = :round_id
    ORDER BY position
""")

_UPSERT_POOL_SQL = text("""
    INSERT INTO round_pools
        (round_id, currency, position, up_pool, down_pool, up_fees, down_fees, paid_out)
    VALUES
        (:round_id, :currency, :position, :up_pool, :down_pool, :up_fees, :down_fees, :paid_out)
    ON CONFLICT (round_id, currency) DO UPDATE
        SET up_pool = EXCLUDED.up_pool,
            down_pool = EXCLUDED.down_pool,
            up_fees = EXCLUDED.up_fees,
            down_fees = EXCLUDED.down_fees,
            paid_out = EXCLUDED.paid_out
""")

# ---------------------------------------------------------------------------
# SQL: bets
# ---------------------------------------------------------------------------

_BET_COLUMNS = "round_id, owner, side_up, currency, amount, gross_amount, fee_paid, usd_value"

_GET_BET_SQL = text(
    f"SELECT {_BET_COLUMNS} FROM user_bets WHERE round_id = :round_id AND owner = :owner"
)

_GET_BET_FOR_UPDATE_SQL = text(
    f"SELECT {_BET_COLUMNS} FROM user_bets"
    " WHERE round_id = :round_id AND owner = :owner FOR UPDATE"
)

_UPSERT_BET_SQL = text("""
    INSERT INTO user_bets
        (round_id, owner, side_up, currency, amount, gross_amount, fee_paid, usd_value)
    VALUES
        (:round_id, :owner, :side_up, :currency, :amount, :gross_amount, :fee_paid, :usd_value)
    ON CONFLICT (round_id, owner) DO UPDATE
        SET amount = EXCLUDED.amount,
            gross_amount = EXCLUDED.gross_amount,
            fee_paid = EXCLUDED.fee_paid,
            usd_value = EXCLUDED.usd_value,
            updated_at = NOW()
""")

_GET_CLAIMS_SQL = text("""
    SELECT currency, amount FROM bet_claims
    WHERE round_id = :round_id AND owner = :owner
""")

# Primary key (round_id, owner, currency) is the per-currency claimed flag.
_INSERT_CLAIM_SQL = text("""
    INSERT INTO bet_claims (round_id, owner, currency, amount)
    VALUES (:round_id, :owner, :currency, :amount)
    ON CONFLICT (round_id, owner, currency) DO NOTHING
    RETURNING round_id
""")


def _row_to_round(row: object, pools: dict[str, CurrencyPool]) -> Round:
    return Round(
        id=row.id,  # type: ignore[attr-defined]
        locked_price=row.locked_price,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        end_time=row.end_time,  # type: ignore[attr-defined]
        pools=pools,
        up_pool_usd=row.up_pool_usd,  # type: ignore[attr-defined]
        down_pool_usd=row.down_pool_usd,  # type: ignore[attr-defined]
        total_fees_usd=row.total_fees_usd,  # type: ignore[attr-defined]
        outcome=RoundOutcome(row.outcome),  # type: ignore[attr-defined]
        final_price=row.final_price,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        resolved_by=row.resolved_by,  # type: ignore[attr-defined]
        fees_collected=row.fees_collected,  # type: ignore[attr-defined]
        closed=row.closed,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_pool(row: object) -> CurrencyPool:
    return CurrencyPool(
        currency=row.currency,  # type: ignore[attr-defined]
        up_pool=row.up_pool,  # type: ignore[attr-defined]
        down_pool=row.down_pool,  # type: ignore[attr-defined]
        up_fees=row.up_fees,  # type: ignore[attr-defined]
        down_fees=row.down_fees,  # type: ignore[attr-defined]
        paid_out=row.paid_out,  # type: ignore[attr-defined]
    )


def _row_to_bet(row: object, claims: dict[str, int]) -> Bet:
    return Bet(
        round_id=row.round_id,  # type: ignore[attr-defined]
        owner=row.owner,  # type: ignore[attr-defined]
        side_up=row.side_up,  # type: ignore[attr-defined]
        currency=row.currency,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        gross_amount=row.gross_amount,  # type: ignore[attr-defined]
        fee_paid=row.fee_paid,  # type: ignore[attr-defined]
        usd_value=row.usd_value,  # type: ignore[attr-defined]
        claims=claims,
    )


class RoundRepository:
    async def _load_pools(self, db: AsyncSession, round_id: int) -> dict[str, CurrencyPool]:
        result = await db.execute(_GET_POOLS_SQL, {"round_id": round_id})
        return {p.currency: p for p in (_row_to_pool(r) for r in result.fetchall())}

    async def get_round(
        self, db: AsyncSession, round_id: int, *, for_update: bool = False
    ) -> Round | None:
        sql = _GET_ROUND_FOR_UPDATE_SQL if for_update else _GET_ROUND_SQL
        row = (await db.execute(sql, {"id": round_id})).fetchone()
        if row is None:
            return None
        return _row_to_round(row, await self._load_pools(db, round_id))

    async def list_rounds(self, db: AsyncSession, limit: int) -> list[Round]:
        rows = (await db.execute(_LIST_ROUNDS_SQL, {"limit": limit})).fetchall()
        return [_row_to_round(r, await self._load_pools(db, r.id)) for r in rows]

    async def insert_round(self, db: AsyncSession, rnd: Round) -> None:
        result = await db.execute(
            _INSERT_ROUND_SQL,
            {
                "id": rnd.id,
                "locked_price": rnd.locked_price,
                "created_at": rnd.created_at,
                "end_time": rnd.end_time,
                "outcome": rnd.outcome.value,
            },
        )
        if result.fetchone() is None:
            raise DuplicateEntityError(f"round {rnd.id}")
        await self._save_pools(db, rnd)

    async def save_round(self, db: AsyncSession, rnd: Round) -> None:
        await db.execute(
            _SAVE_ROUND_SQL,
            {
                "id": rnd.id,
                "up_pool_usd": rnd.up_pool_usd,
                "down_pool_usd": rnd.down_pool_usd,
                "total_fees_usd": rnd.total_fees_usd,
                "outcome": rnd.outcome.value,
                "final_price": rnd.final_price,
                "resolved_at": rnd.resolved_at,
                "resolved_by": rnd.resolved_by,
                "fees_collected": rnd.fees_collected,
                "closed": rnd.closed,
            },
        )
        await self._save_pools(db, rnd)

    async def _save_pools(self, db: AsyncSession, rnd: Round) -> None:
        for position, pool in enumerate(rnd.pools.values()):
            await db.execute(
                _UPSERT_POOL_SQL,
                {
                    "round_id": rnd.id,
                    "currency": pool.currency,
                    "position": position,
                    "up_pool": pool.up_pool,
                    "down_pool": pool.down_pool,
                    "up_fees": pool.up_fees,
                    "down_fees": pool.down_fees,
                    "paid_out": pool.paid_out,
                },
            )

    async def get_bet(
        self, db: AsyncSession, round_id: int, owner: str, *, for_update: bool = False
    ) -> Bet | None:
        sql = _GET_BET_FOR_UPDATE_SQL if for_update else _GET_BET_SQL
        params = {"round_id": round_id, "owner": owner}
        row = (await db.execute(sql, params)).fetchone()
        if row is None:
            return None
        claim_rows = (await db.execute(_GET_CLAIMS_SQL, params)).fetchall()
        return _row_to_bet(row, {r.currency: r.amount for r in claim_rows})

    async def save_bet(self, db: AsyncSession, bet: Bet) -> None:
        await db.execute(
            _UPSERT_BET_SQL,
            {
                "round_id": bet.round_id,
                "owner": bet.owner,
                "side_up": bet.side_up,
                "currency": bet.currency,
                "amount": bet.amount,
                "gross_amount": bet.gross_amount,
                "fee_paid": bet.fee_paid,
                "usd_value": bet.usd_value,
            },
        )

    async def record_claim(
        self, db: AsyncSession, round_id: int, owner: str, currency: str, amount: int
    ) -> None:
        result = await db.execute(
            _INSERT_CLAIM_SQL,
            {"round_id": round_id, "owner": owner, "currency": currency, "amount": amount},
        )
        if result.fetchone() is None:
            raise AlreadyClaimedError(round_id, currency)
