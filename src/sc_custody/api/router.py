"""sc_custody REST API: wallet balances and simulated funding for the caller."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, respond
from src.sc_custody.application.schemas import DepositRequest, WithdrawRequest
from src.sc_custody.application.service import CustodyApplicationService
from src.sc_gateway.auth.dependencies import get_actor

router = APIRouter(prefix="/custody", tags=["custody"])

_service = CustodyApplicationService()


@router.get("/balance")
async def get_balance(
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return respond(request, await _service.get_balance(db, actor))


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, actor, body.asset, body.amount)
    return respond(request, data)


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest,
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, actor, body.asset, body.amount)
    return respond(request, data)


@router.get("/entries")
async def list_entries(
    actor: Annotated[str, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    asset: str | None = Query(None, description="Filter by asset"),
) -> ApiResponse:
    data = await _service.list_entries(db, actor, cursor, limit, asset)
    return respond(request, data)
