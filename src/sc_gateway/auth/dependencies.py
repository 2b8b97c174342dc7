"""FastAPI dependencies: get_actor / require_admin.

Authentication happens upstream; this service trusts the actor identity the
gateway forwards in the X-Actor-Id header and only enforces authorization
against stored authorities (market authority, position owner, protocol admin).

Usage in any router:
    from src.sc_gateway.auth.dependencies import get_actor

    @router.post("/positions")
    async def open_position(actor: str = Depends(get_actor)):
        ...
"""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_admin.infrastructure.persistence import ProtocolConfigRepository
from src.sc_common.database import get_db_session
from src.sc_common.errors import UnauthorizedError

ACTOR_HEADER = "X-Actor-Id"

_config_repo = ProtocolConfigRepository()


async def get_actor(
    x_actor_id: Annotated[str | None, Header(alias=ACTOR_HEADER)] = None,
) -> str:
    """Return the caller identity, 403 when the header is missing or blank."""
    if x_actor_id is None or not x_actor_id.strip():
        raise UnauthorizedError(f"missing {ACTOR_HEADER} header")
    return x_actor_id.strip()


async def require_admin(
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> str:
    """Verify the caller is the stored protocol admin."""
    config = await _config_repo.get(db)
    if actor != config.admin:
        raise UnauthorizedError("protocol admin required")
    return actor
