"""Admin REST API: mutating routes require the protocol admin (X-Actor-Id)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_admin.application.service import AdminService
from src.sc_common.database import get_db_session
from src.sc_common.response import ApiResponse, respond
from src.sc_gateway.auth.dependencies import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class TreasuryRequest(BaseModel):
    treasury: str = Field(..., min_length=1, max_length=128)


class ForceResolveRequest(BaseModel):
    final_price: int = Field(..., gt=0)


class FundInsuranceRequest(BaseModel):
    market_id: str
    amount: int = Field(..., gt=0)


class DrainRequest(BaseModel):
    bucket: str = Field(..., min_length=1, max_length=128)
    asset: str = Field(..., min_length=1, max_length=16)


@router.get("/config")
async def get_config(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.get_config(db))


@router.post("/pause")
async def pause(
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.set_paused(db, actor, True))


@router.post("/unpause")
async def unpause(
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.set_paused(db, actor, False))


@router.post("/treasury")
async def rotate_treasury(
    body: TreasuryRequest,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.rotate_treasury(db, actor, body.treasury))


@router.post("/insurance")
async def fund_insurance(
    body: FundInsuranceRequest,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.fund_insurance(db, actor, body.market_id, body.amount)
    return respond(request, result)


@router.post("/rounds/{round_id}/force-resolve")
async def force_resolve(
    round_id: int,
    body: ForceResolveRequest,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.force_resolve(db, actor, round_id, body.final_price)
    return respond(request, result)


@router.post("/rounds/{round_id}/collect-fees")
async def collect_fees(
    round_id: int,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.collect_fees(db, actor, round_id))


@router.post("/rounds/{round_id}/close")
async def close_round(
    round_id: int,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.close_round(db, actor, round_id))


@router.post("/custody/drain")
async def drain(
    body: DrainRequest,
    request: Request,
    actor: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return respond(request, await _service.drain(db, actor, body.bucket, body.asset))
