"""Pydantic schemas for sc_pool API."""

from pydantic import BaseModel, Field

from src.sc_common.units import amount_to_display
from src.sc_pool.domain.models import Bet, ClaimResult, CurrencyPool, Round


class StartRoundRequest(BaseModel):
    duration_seconds: int = Field(0, ge=0, description="0 = configured default duration")
    manual_price: int | None = Field(
        None, gt=0, description="Fallback locked price when the oracle is unavailable"
    )


class PlaceBetRequest(BaseModel):
    side_up: bool
    amount: int = Field(..., gt=0, description="Gross stake, smallest unit of the currency")
    currency: str = Field(..., min_length=1, max_length=16)
    exchange_rate: int | None = Field(
        None, gt=0, description="USD per unit, 8-decimal fixed point (non-base currency only)"
    )


class ResolveRoundRequest(BaseModel):
    final_price: int | None = Field(None, gt=0, description="Manual final price (admin only)")


class ClaimRequest(BaseModel):
    currency: str = Field(..., min_length=1, max_length=16)


class CurrencyPoolOut(BaseModel):
    currency: str
    up_pool: int
    down_pool: int
    up_fees: int
    down_fees: int
    total_fees: int
    paid_out: int

    @classmethod
    def from_domain(cls, p: CurrencyPool) -> "CurrencyPoolOut":
        return cls(
            currency=p.currency,
            up_pool=p.up_pool,
            down_pool=p.down_pool,
            up_fees=p.up_fees,
            down_fees=p.down_fees,
            total_fees=p.total_fees,
            paid_out=p.paid_out,
        )


class RoundResponse(BaseModel):
    id: int
    locked_price: int
    final_price: int | None
    created_at: int
    lock_time: int
    end_time: int
    outcome: str
    resolved: bool
    up_pool_usd: int
    up_pool_usd_display: str
    down_pool_usd: int
    down_pool_usd_display: str
    total_fees_usd: int
    pools: list[CurrencyPoolOut]
    fees_collected: bool
    closed: bool

    @classmethod
    def from_domain(cls, r: Round) -> "RoundResponse":
        return cls(
            id=r.id,
            locked_price=r.locked_price,
            final_price=r.final_price,
            created_at=r.created_at,
            lock_time=r.lock_time,
            end_time=r.end_time,
            outcome=r.outcome.value,
            resolved=r.is_resolved,
            up_pool_usd=r.up_pool_usd,
            up_pool_usd_display=amount_to_display(r.up_pool_usd),
            down_pool_usd=r.down_pool_usd,
            down_pool_usd_display=amount_to_display(r.down_pool_usd),
            total_fees_usd=r.total_fees_usd,
            pools=[CurrencyPoolOut.from_domain(p) for p in r.pools.values()],
            fees_collected=r.fees_collected,
            closed=r.closed,
        )


class BetResponse(BaseModel):
    round_id: int
    owner: str
    side: str
    currency: str
    amount: int
    gross_amount: int
    fee_paid: int
    usd_value: int
    claims: dict[str, int]

    @classmethod
    def from_domain(cls, b: Bet) -> "BetResponse":
        return cls(
            round_id=b.round_id,
            owner=b.owner,
            side="UP" if b.side_up else "DOWN",
            currency=b.currency,
            amount=b.amount,
            gross_amount=b.gross_amount,
            fee_paid=b.fee_paid,
            usd_value=b.usd_value,
            claims=dict(b.claims),
        )


class PlaceBetResponse(BaseModel):
    round: RoundResponse
    bet: BetResponse


class ClaimLine(BaseModel):
    currency: str
    entitlement: int
    paid: int

    @classmethod
    def from_domain(cls, c: ClaimResult) -> "ClaimLine":
        return cls(currency=c.currency, entitlement=c.entitlement, paid=c.paid)


class ClaimResponse(BaseModel):
    round_id: int
    owner: str
    claims: list[ClaimLine]
    total_paid: int


class RoundListResponse(BaseModel):
    items: list[RoundResponse]
