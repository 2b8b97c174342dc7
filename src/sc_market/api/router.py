"""sc_market REST endpoints.

POST /markets                      initialize (caller becomes price authority)
GET  /markets                      list with cursor pagination
GET  /markets/{market_id}          detail
POST /markets/{market_id}/price    push a new mark price (authority only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, respond
from src.sc_gateway.auth.dependencies import get_actor
from src.sc_market.application.schemas import InitializeMarketRequest, UpdatePriceRequest
from src.sc_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.post("")
async def initialize_market(
    body: InitializeMarketRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.initialize(db, body.name, body.initial_price, actor)
    return respond(request, result)


@router.get("")
async def list_markets(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, cursor, limit)
    return respond(request, result)


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market(db, market_id)
    return respond(request, result)


@router.post("/{market_id}/price")
async def update_price(
    market_id: str,
    body: UpdatePriceRequest,
    request: Request,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.update_price(db, market_id, body.price, actor)
    return respond(request, result)
