"""sc_pool REST endpoints.

POST /rounds                        start a round (protocol admin)
GET  /rounds                        most recent rounds
GET  /rounds/{round_id}             round detail with per-currency pools
POST /rounds/{round_id}/bets        place / add to the caller's bet
GET  /rounds/{round_id}/bets/me     the caller's bet
POST /rounds/{round_id}/resolve     resolve from the oracle after end time
POST /rounds/{round_id}/claim       claim one currency
POST /rounds/{round_id}/claim-all   claim every currency owed
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, respond
from src.sc_gateway.auth.dependencies import get_actor
from src.sc_pool.application.schemas import (
    ClaimRequest,
    PlaceBetRequest,
    ResolveRoundRequest,
    StartRoundRequest,
)
from src.sc_pool.application.service import PoolApplicationService

router = APIRouter(prefix="/rounds", tags=["rounds"])

_service = PoolApplicationService()


@router.post("")
async def start_round(
    body: StartRoundRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.start_round(db, actor, body.duration_seconds, body.manual_price)
    return respond(request, result)


@router.get("")
async def list_rounds(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    return respond(request, await _service.list_rounds(db, limit))


@router.get("/{round_id}")
async def get_round(
    round_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_round(db, round_id))


@router.post("/{round_id}/bets")
async def place_bet(
    round_id: int,
    body: PlaceBetRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_bet(
        db, round_id, actor, body.side_up, body.amount, body.currency, body.exchange_rate
    )
    return respond(request, result)


@router.get("/{round_id}/bets/me")
async def get_my_bet(
    round_id: int,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_bet(db, round_id, actor))


@router.post("/{round_id}/resolve")
async def resolve_round(
    round_id: int,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: ResolveRoundRequest | None = None,
) -> ApiResponse:
    final_price = body.final_price if body is not None else None
    result = await _service.resolve(db, round_id, actor, final_price)
    return respond(request, result)


@router.post("/{round_id}/claim")
async def claim(
    round_id: int,
    body: ClaimRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.claim(db, round_id, actor, body.currency)
    return respond(request, result)


@router.post("/{round_id}/claim-all")
async def claim_all(
    round_id: int,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.claim_all(db, round_id, actor)
    return respond(request, result)
