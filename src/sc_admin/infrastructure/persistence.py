"""ProtocolConfigRepository: raw SQL over the single protocol_config row."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_admin.domain.models import ProtocolConfig
from src.sc_common.errors import InternalError

_COLUMNS = "admin, treasury, paused, current_round_id, updated_at"

_GET_SQL = text(f"SELECT {_COLUMNS} FROM protocol_config WHERE id = 1")

_SET_PAUSED_SQL = text(f"""
    UPDATE protocol_config
    SET paused = :paused, updated_at = NOW()
    WHERE id = 1
    RETURNING {_COLUMNS}
""")

_SET_TREASURY_SQL = text(f"""
    UPDATE protocol_config
    SET treasury = :treasury, updated_at = NOW()
    WHERE id = 1
    RETURNING {_COLUMNS}
""")

# Row lock serializes concurrent round starts; ids stay strictly monotonic.
_ALLOCATE_ROUND_ID_SQL = text("""
    UPDATE protocol_config
    SET current_round_id = current_round_id + 1, updated_at = NOW()
    WHERE id = 1
    RETURNING current_round_id - 1 AS round_id
""")


def _row_to_config(row: object) -> ProtocolConfig:
    return ProtocolConfig(
        admin=row.admin,  # type: ignore[attr-defined]
        treasury=row.treasury,  # type: ignore[attr-defined]
        paused=row.paused,  # type: ignore[attr-defined]
        current_round_id=row.current_round_id,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class ProtocolConfigRepository:
    async def get(self, db: AsyncSession) -> ProtocolConfig:
        row = (await db.execute(_GET_SQL)).fetchone()
        if row is None:
            raise InternalError("protocol_config row missing; run migrations")
        return _row_to_config(row)

    async def set_paused(self, db: AsyncSession, paused: bool) -> ProtocolConfig:
        row = (await db.execute(_SET_PAUSED_SQL, {"paused": paused})).fetchone()
        if row is None:
            raise InternalError("protocol_config row missing; run migrations")
        return _row_to_config(row)

    async def set_treasury(self, db: AsyncSession, treasury: str) -> ProtocolConfig:
        row = (await db.execute(_SET_TREASURY_SQL, {"treasury": treasury})).fetchone()
        if row is None:
            raise InternalError("protocol_config row missing; run migrations")
        return _row_to_config(row)

    async def allocate_round_id(self, db: AsyncSession) -> int:
        row = (await db.execute(_ALLOCATE_ROUND_ID_SQL)).fetchone()
        if row is None:
            raise InternalError("protocol_config row missing; run migrations")
        return int(row.round_id)
