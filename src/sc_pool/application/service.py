"""PoolApplicationService: transaction boundary around PoolEngine."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.database import unit_of_work
from src.sc_common.errors import BetNotFoundError, RoundNotFoundError
from src.sc_pool.application.schemas import (
    BetResponse,
    ClaimLine,
    ClaimResponse,
    PlaceBetResponse,
    RoundListResponse,
    RoundResponse,
)
from src.sc_pool.domain.models import ClaimResult
from src.sc_pool.domain.repository import RoundRepositoryProtocol
from src.sc_pool.engine.engine import PoolEngine, get_pool_engine
from src.sc_pool.infrastructure.persistence import RoundRepository


def _claim_response(round_id: int, owner: str, results: list[ClaimResult]) -> ClaimResponse:
    return ClaimResponse(
        round_id=round_id,
        owner=owner,
        claims=[ClaimLine.from_domain(r) for r in results],
        total_paid=sum(r.paid for r in results),
    )


class PoolApplicationService:
    def __init__(
        self,
        engine: PoolEngine | None = None,
        repo: RoundRepositoryProtocol | None = None,
        events: EventSinkProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._repo: RoundRepositoryProtocol = repo or RoundRepository()
        self._events: EventSinkProtocol = events or EventSink()

    @property
    def engine(self) -> PoolEngine:
        return self._engine or get_pool_engine()

    async def start_round(
        self,
        db: AsyncSession,
        caller: str,
        duration: int = 0,
        manual_price: int | None = None,
    ) -> RoundResponse:
        async with unit_of_work(db):
            rnd, events = await self.engine.start_round(db, caller, duration, manual_price)
        await self._events.publish(events)
        return RoundResponse.from_domain(rnd)

    async def place_bet(
        self,
        db: AsyncSession,
        round_id: int,
        owner: str,
        side_up: bool,
        amount: int,
        currency: str,
        exchange_rate: int | None = None,
    ) -> PlaceBetResponse:
        async with unit_of_work(db):
            rnd, bet, events = await self.engine.place_bet(
                db, round_id, owner, side_up, amount, currency, exchange_rate
            )
        await self._events.publish(events)
        return PlaceBetResponse(
            round=RoundResponse.from_domain(rnd), bet=BetResponse.from_domain(bet)
        )

    async def resolve(
        self,
        db: AsyncSession,
        round_id: int,
        caller: str,
        final_price: int | None = None,
    ) -> RoundResponse:
        async with unit_of_work(db):
            rnd, events = await self.engine.resolve(db, round_id, caller, final_price)
        await self._events.publish(events)
        return RoundResponse.from_domain(rnd)

    async def claim(
        self, db: AsyncSession, round_id: int, owner: str, currency: str
    ) -> ClaimResponse:
        async with unit_of_work(db):
            results, events = await self.engine.claim(db, round_id, owner, currency)
        await self._events.publish(events)
        return _claim_response(round_id, owner, results)

    async def claim_all(self, db: AsyncSession, round_id: int, owner: str) -> ClaimResponse:
        async with unit_of_work(db):
            results, events = await self.engine.claim_all(db, round_id, owner)
        await self._events.publish(events)
        return _claim_response(round_id, owner, results)

    async def get_round(self, db: AsyncSession, round_id: int) -> RoundResponse:
        rnd = await self._repo.get_round(db, round_id)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        return RoundResponse.from_domain(rnd)

    async def list_rounds(self, db: AsyncSession, limit: int) -> RoundListResponse:
        rounds = await self._repo.list_rounds(db, limit)
        return RoundListResponse(items=[RoundResponse.from_domain(r) for r in rounds])

    async def get_bet(self, db: AsyncSession, round_id: int, owner: str) -> BetResponse:
        bet = await self._repo.get_bet(db, round_id, owner)
        if bet is None:
            raise BetNotFoundError(round_id, owner)
        return BetResponse.from_domain(bet)
