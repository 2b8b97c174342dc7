"""sc_futures REST endpoints.

POST /positions                          open (caller is owner)
GET  /positions                          list, filter by owner / market / status
GET  /positions/liquidatable             open positions at/above threshold
GET  /positions/{position_id}            detail
POST /positions/{position_id}/close      owner close at mark price
POST /positions/{position_id}/liquidate  permissionless liquidation
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, respond
from src.sc_futures.application.schemas import OpenPositionRequest
from src.sc_futures.application.service import FuturesApplicationService
from src.sc_gateway.auth.dependencies import get_actor

router = APIRouter(prefix="/positions", tags=["positions"])

_service = FuturesApplicationService()


@router.post("")
async def open_position(
    body: OpenPositionRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.open_position(
        db, actor, body.market_id, body.direction, body.deposit, body.use_discount, body.nonce
    )
    return respond(request, result)


@router.get("")
async def list_positions(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    owner: str | None = Query(None),
    market_id: str | None = Query(None),
    status: str | None = Query(None, description="OPEN / CLOSED / LIQUIDATED"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await _service.list_positions(db, owner, market_id, status, limit)
    return respond(request, result)


@router.get("/liquidatable")
async def list_liquidatable(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    market_id: str = Query(...),
) -> ApiResponse:
    result = await _service.list_liquidatable(db, market_id)
    return respond(request, result)


@router.get("/{position_id}")
async def get_position(
    position_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_position(db, position_id)
    return respond(request, result)


@router.post("/{position_id}/close")
async def close_position(
    position_id: str,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.close_position(db, position_id, actor)
    return respond(request, result)


@router.post("/{position_id}/liquidate")
async def liquidate_position(
    position_id: str,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.liquidate_position(db, position_id, actor)
    return respond(request, result)
