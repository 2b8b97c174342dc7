"""Pydantic schemas for sc_futures API."""

from pydantic import BaseModel, Field

from src.sc_common.enums import Direction
from src.sc_futures.domain.models import Position


class OpenPositionRequest(BaseModel):
    market_id: str
    direction: Direction
    deposit: int = Field(..., gt=0, description="Gross collateral deposit, smallest unit")
    use_discount: bool = False
    nonce: int | None = Field(None, ge=0, description="Caller-chosen nonce; generated if omitted")


class PositionResponse(BaseModel):
    id: str
    owner: str
    market_id: str
    nonce: int
    direction: str
    status: str
    deposit: int
    fee_paid: int
    collateral: int
    entry_price: int
    opened_at: int
    exit_price: int | None
    realized_pnl: int | None
    payout: int | None
    closed_by: str | None
    closed_at: int | None

    @classmethod
    def from_domain(cls, p: Position) -> "PositionResponse":
        return cls(
            id=p.id,
            owner=p.owner,
            market_id=p.market_id,
            nonce=p.nonce,
            direction=p.direction.value,
            status=p.status.value,
            deposit=p.deposit,
            fee_paid=p.fee_paid,
            collateral=p.collateral,
            entry_price=p.entry_price,
            opened_at=p.opened_at,
            exit_price=p.exit_price,
            realized_pnl=p.realized_pnl,
            payout=p.payout,
            closed_by=p.closed_by,
            closed_at=p.closed_at,
        )


class PositionListResponse(BaseModel):
    items: list[PositionResponse]


class LiquidatableItem(BaseModel):
    position: PositionResponse
    loss_bps: int


class LiquidatableResponse(BaseModel):
    market_id: str
    threshold_bps: int
    items: list[LiquidatableItem]
