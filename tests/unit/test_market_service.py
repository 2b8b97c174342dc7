"""MarketApplicationService over the in-memory repository."""

import pytest

from src.sc_common.enums import EventType
from src.sc_common.errors import DuplicateEntityError, MarketNotFoundError, UnauthorizedError
from src.sc_market.application.service import MarketApplicationService


@pytest.fixture
def service(market_repo, events) -> MarketApplicationService:
    return MarketApplicationService(repo=market_repo, events=events)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_creates_and_publishes(self, db, service, events):
        detail = await service.initialize(db, "GOLD", 195_000, "oracle-bot")

        assert detail.id == "market:GOLD"
        assert detail.authority == "oracle-bot"
        assert events.types() == [EventType.MARKET_INITIALIZED.value]
        assert len(events.published) == 1
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_rolls_back(self, db, service):
        await service.initialize(db, "GOLD", 100, "a")
        with pytest.raises(DuplicateEntityError):
            await service.initialize(db, "GOLD", 100, "a")
        db.rollback.assert_awaited_once()


class TestUpdatePrice:
    @pytest.mark.asyncio
    async def test_records_before_and_after(self, db, service, events):
        await service.initialize(db, "GOLD", 100, "oracle-bot")

        resp = await service.update_price(db, "market:GOLD", 125, "oracle-bot")

        assert (resp.old_price, resp.new_price) == (100, 125)
        event = events.recorded[-1]
        assert event.event_type == EventType.PRICE_UPDATED
        assert event.before == {"mark_price": 100}
        assert event.after == {"mark_price": 125}

    @pytest.mark.asyncio
    async def test_unknown_market(self, db, service):
        with pytest.raises(MarketNotFoundError):
            await service.update_price(db, "market:NOPE", 125, "oracle-bot")

    @pytest.mark.asyncio
    async def test_wrong_authority(self, db, service, events):
        await service.initialize(db, "GOLD", 100, "oracle-bot")
        with pytest.raises(UnauthorizedError):
            await service.update_price(db, "market:GOLD", 125, "mallory")
        assert len(events.published) == 1


class TestReads:
    @pytest.mark.asyncio
    async def test_list_pages(self, db, service):
        for name in ("GOLD", "SILVER", "OIL"):
            await service.initialize(db, name, 100, "a")

        page = await service.list_markets(db, cursor=None, limit=2)

        assert len(page.items) == 2
        assert page.has_more is True
        assert page.next_cursor is not None

    @pytest.mark.asyncio
    async def test_get_missing(self, db, service):
        with pytest.raises(MarketNotFoundError):
            await service.get_market(db, "market:NOPE")
