"""MarketApplicationService: market registry operations.

initialize / update_price run in a unit of work and publish their event
after commit. Reads run without an explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sc_clearing.domain.events import SettlementEvent
from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.database import unit_of_work
from src.sc_common.datetime_utils import unix_now
from src.sc_common.enums import EventType
from src.sc_common.errors import MarketNotFoundError
from src.sc_market.application.schemas import (
    MarketDetail,
    MarketListResponse,
    PriceUpdateResponse,
    cursor_decode,
    cursor_encode,
)
from src.sc_market.domain.registry import apply_price_update, new_market
from src.sc_market.domain.repository import MarketRepositoryProtocol
from src.sc_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        events: EventSinkProtocol | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._events: EventSinkProtocol = events or EventSink()

    async def initialize(
        self, db: AsyncSession, name: str, initial_price: int, authority: str
    ) -> MarketDetail:
        market = new_market(name, initial_price, authority, unix_now())
        async with unit_of_work(db):
            market = await self._repo.insert_market(db, market)
            event = SettlementEvent(
                event_type=EventType.MARKET_INITIALIZED,
                entity_type="market",
                entity_id=market.id,
                actor=authority,
                after={"name": market.name, "mark_price": market.mark_price},
            )
            await self._events.record(db, event)
        await self._events.publish([event])
        logger.info("Market %s initialized at %d by %s", market.id, initial_price, authority)
        return MarketDetail.from_domain(market)

    async def update_price(
        self, db: AsyncSession, market_id: str, new_price: int, caller: str
    ) -> PriceUpdateResponse:
        async with unit_of_work(db):
            market = await self._repo.get_market_by_id(db, market_id, for_update=True)
            if market is None:
                raise MarketNotFoundError(market_id)
            old_price = apply_price_update(market, new_price, caller, unix_now())
            await self._repo.save_market(db, market)
            event = SettlementEvent(
                event_type=EventType.PRICE_UPDATED,
                entity_type="market",
                entity_id=market.id,
                actor=caller,
                before={"mark_price": old_price},
                after={"mark_price": market.mark_price},
            )
            await self._events.record(db, event)
        await self._events.publish([event])
        return PriceUpdateResponse(
            market_id=market.id,
            old_price=old_price,
            new_price=market.mark_price,
            updated_at=market.last_price_update,
        )

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return MarketDetail.from_domain(market)

    async def list_markets(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> MarketListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(db, cursor_ts, cursor_id, limit + 1)
        has_more = len(markets) > limit
        page = markets[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return MarketListResponse(
            items=[MarketDetail.from_domain(m) for m in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
