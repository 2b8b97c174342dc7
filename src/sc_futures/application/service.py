"""FuturesApplicationService: transaction boundary around FuturesEngine.

Each mutation: engine work in one unit of work, then events published
after commit.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.database import unit_of_work
from src.sc_common.enums import Direction, PositionStatus
from src.sc_common.errors import InvalidInputError, PositionNotFoundError
from src.sc_futures.application.schemas import (
    LiquidatableItem,
    LiquidatableResponse,
    PositionListResponse,
    PositionResponse,
)
from src.sc_futures.domain.repository import PositionRepositoryProtocol
from src.sc_futures.engine.engine import FuturesEngine, get_futures_engine
from src.sc_futures.infrastructure.persistence import PositionRepository


class FuturesApplicationService:
    def __init__(
        self,
        engine: FuturesEngine | None = None,
        repo: PositionRepositoryProtocol | None = None,
        events: EventSinkProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._repo: PositionRepositoryProtocol = repo or PositionRepository()
        self._events: EventSinkProtocol = events or EventSink()

    @property
    def engine(self) -> FuturesEngine:
        return self._engine or get_futures_engine()

    async def open_position(
        self,
        db: AsyncSession,
        owner: str,
        market_id: str,
        direction: Direction | str,
        deposit: int,
        use_discount: bool = False,
        nonce: int | None = None,
    ) -> PositionResponse:
        async with unit_of_work(db):
            position, events = await self.engine.open_position(
                db, market_id, owner, direction, deposit, use_discount, nonce
            )
        await self._events.publish(events)
        return PositionResponse.from_domain(position)

    async def close_position(
        self, db: AsyncSession, position_id: str, caller: str
    ) -> PositionResponse:
        async with unit_of_work(db):
            position, events = await self.engine.close_position(db, position_id, caller)
        await self._events.publish(events)
        return PositionResponse.from_domain(position)

    async def liquidate_position(
        self, db: AsyncSession, position_id: str, liquidator: str
    ) -> PositionResponse:
        async with unit_of_work(db):
            position, events = await self.engine.liquidate_position(db, position_id, liquidator)
        await self._events.publish(events)
        return PositionResponse.from_domain(position)

    async def get_position(self, db: AsyncSession, position_id: str) -> PositionResponse:
        position = await self._repo.get_position(db, position_id)
        if position is None:
            raise PositionNotFoundError(position_id)
        return PositionResponse.from_domain(position)

    async def list_positions(
        self,
        db: AsyncSession,
        owner: str | None,
        market_id: str | None,
        status: str | None,
        limit: int,
    ) -> PositionListResponse:
        if status is not None and status not in PositionStatus.__members__:
            raise InvalidInputError(f"unknown position status {status!r}")
        positions = await self._repo.list_positions(db, owner, market_id, status, limit)
        return PositionListResponse(items=[PositionResponse.from_domain(p) for p in positions])

    async def list_liquidatable(self, db: AsyncSession, market_id: str) -> LiquidatableResponse:
        found = await self.engine.list_liquidatable(db, market_id)
        return LiquidatableResponse(
            market_id=market_id,
            threshold_bps=self.engine.config.liquidation_threshold_bps,
            items=[
                LiquidatableItem(position=PositionResponse.from_domain(p), loss_bps=loss)
                for p, loss in found
            ],
        )
