"""FuturesEngine scenarios over in-memory repositories."""

import pytest

from src.sc_clearing.domain.fee import RatioDiscount
from src.sc_common.datetime_utils import unix_now
from src.sc_common.enums import Direction, EventType, PositionStatus
from src.sc_common.errors import (
    InsufficientFundsError,
    InvalidDirectionError,
    MarketNotFoundError,
    NotLiquidatableError,
    OracleUnavailableError,
    PositionClosedError,
    ProtocolPausedError,
    UnauthorizedError,
)
from src.sc_custody.domain.models import (
    insurance_bucket,
    position_vault_bucket,
    treasury_bucket,
    wallet_bucket,
)
from src.sc_futures.engine.engine import FuturesConfig, FuturesEngine
from src.sc_market.domain.registry import new_market

ASSET = "SOL"
MARKET_ID = "market:GOLD"


def _config(**kwargs) -> FuturesConfig:
    defaults = dict(
        asset=ASSET,
        taker_fee_bps=0,
        discount=RatioDiscount(9, 10),
        liquidation_threshold_bps=8000,
        liquidator_reward_bps=200,
    )
    defaults.update(kwargs)
    return FuturesConfig(**defaults)


@pytest.fixture
def market(market_repo):
    m = new_market("GOLD", 100, "oracle-bot", unix_now())
    market_repo.markets[m.id] = m
    return m


@pytest.fixture
def make_engine(position_repo, market_repo, custody_repo, protocol_repo, events):
    def _make(**kwargs) -> FuturesEngine:
        return FuturesEngine(
            positions=position_repo,
            markets=market_repo,
            custody_repo=custody_repo,
            protocol=protocol_repo,
            events=events,
            config=_config(**kwargs),
        )

    return _make


class TestOpenPosition:
    @pytest.mark.asyncio
    async def test_moves_deposit_into_vault_and_books_open_interest(
        self, db, make_engine, market, custody_repo, events
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 5_000)
        engine = make_engine()

        position, emitted = await engine.open_position(
            db, MARKET_ID, "alice", "long", 1_000, nonce=1
        )

        assert position.id == "position:alice:market:GOLD:1"
        assert position.direction == Direction.LONG
        assert position.status == PositionStatus.OPEN
        assert position.entry_price == 100
        assert position.collateral == 1_000
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 4_000
        assert custody_repo.of(position_vault_bucket(position.id), ASSET) == 1_000
        assert market.open_interest_long == 1_000
        assert market.open_interest_short == 0
        assert [e.event_type for e in emitted] == [EventType.POSITION_OPENED]
        assert db.savepoints == 1

    @pytest.mark.asyncio
    async def test_fee_goes_to_treasury(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000_000)
        engine = make_engine(taker_fee_bps=5)

        position, _ = await engine.open_position(
            db, MARKET_ID, "alice", "SHORT", 1_000_000, nonce=1
        )

        # 1_000_000 * 5 / 10_000 = 500
        assert position.fee_paid == 500
        assert position.collateral == 999_500
        assert custody_repo.of(treasury_bucket("treasury-1"), ASSET) == 500
        assert custody_repo.of(position_vault_bucket(position.id), ASSET) == 999_500
        assert market.total_fees_collected == 500
        assert market.open_interest_short == 999_500

    @pytest.mark.asyncio
    async def test_discount_applies_ratio(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000_000)
        engine = make_engine(taker_fee_bps=5)

        position, _ = await engine.open_position(
            db, MARKET_ID, "alice", "LONG", 1_000_000, use_discount=True, nonce=1
        )

        assert position.fee_paid == 450

    @pytest.mark.asyncio
    async def test_conservation_across_buckets(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000_000)
        engine = make_engine(taker_fee_bps=5)

        await engine.open_position(db, MARKET_ID, "alice", "LONG", 777_777, nonce=1)

        assert custody_repo.total(ASSET) == 1_000_000

    @pytest.mark.asyncio
    async def test_rejects_bad_direction(self, db, make_engine, market):
        with pytest.raises(InvalidDirectionError):
            await make_engine().open_position(db, MARKET_ID, "alice", "SIDEWAYS", 100, nonce=1)

    @pytest.mark.asyncio
    async def test_unknown_market(self, db, make_engine):
        with pytest.raises(MarketNotFoundError):
            await make_engine().open_position(db, "market:NOPE", "alice", "LONG", 100, nonce=1)

    @pytest.mark.asyncio
    async def test_paused_protocol_blocks_open(self, db, make_engine, market, protocol_repo):
        protocol_repo.config.paused = True
        with pytest.raises(ProtocolPausedError):
            await make_engine().open_position(db, MARKET_ID, "alice", "LONG", 100, nonce=1)

    @pytest.mark.asyncio
    async def test_short_wallet_raises(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 50)
        with pytest.raises(InsufficientFundsError):
            await make_engine().open_position(db, MARKET_ID, "alice", "LONG", 100, nonce=1)


class TestClosePosition:
    @pytest.mark.asyncio
    async def test_profit_beyond_vault_is_paid_from_insurance(
        self, db, make_engine, market, custody_repo, events
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        custody_repo.seed(insurance_bucket(MARKET_ID), ASSET, 500)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        market.mark_price = 110
        closed, emitted = await engine.close_position(db, position.id, "alice")

        # pnl = 10 * 1000 / 100 = 100 -> payout 1100
        assert closed.status == PositionStatus.CLOSED
        assert closed.realized_pnl == 100
        assert closed.payout == 1_100
        assert closed.exit_price == 110
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 1_100
        assert custody_repo.of(insurance_bucket(MARKET_ID), ASSET) == 400
        assert custody_repo.of(position_vault_bucket(position.id), ASSET) == 0
        assert market.open_interest_long == 0
        assert emitted[0].after["transferred"] == 1_100

    @pytest.mark.asyncio
    async def test_breakeven_returns_collateral(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "SHORT", 1_000, nonce=1)

        closed, _ = await engine.close_position(db, position.id, "alice")

        assert closed.realized_pnl == 0
        assert closed.payout == 1_000
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 1_000

    @pytest.mark.asyncio
    async def test_loss_remainder_goes_to_insurance(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "SHORT", 1_000, nonce=1)

        market.mark_price = 110
        closed, emitted = await engine.close_position(db, position.id, "alice")

        assert closed.realized_pnl == -100
        assert closed.payout == 900
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 900
        assert custody_repo.of(insurance_bucket(MARKET_ID), ASSET) == 100
        assert emitted[0].after["retained_by_insurance"] == 100

    @pytest.mark.asyncio
    async def test_profit_clamped_when_insurance_is_empty(
        self, db, make_engine, market, custody_repo
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        market.mark_price = 150
        closed, emitted = await engine.close_position(db, position.id, "alice")

        assert emitted[0].after["payout"] == 1_500
        assert closed.payout == 1_000
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 1_000

    @pytest.mark.asyncio
    async def test_only_owner_may_close(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        with pytest.raises(UnauthorizedError):
            await engine.close_position(db, position.id, "mallory")

    @pytest.mark.asyncio
    async def test_second_close_fails(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)
        await engine.close_position(db, position.id, "alice")

        with pytest.raises(PositionClosedError):
            await engine.close_position(db, position.id, "alice")

    @pytest.mark.asyncio
    async def test_stale_mark_blocks_close(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine(mark_max_age_seconds=60)
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        market.last_price_update = unix_now() - 3_600
        with pytest.raises(OracleUnavailableError):
            await engine.close_position(db, position.id, "alice")

    @pytest.mark.asyncio
    async def test_paused_protocol_blocks_close(
        self, db, make_engine, market, custody_repo, protocol_repo
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)
        protocol_repo.config.paused = True

        with pytest.raises(ProtocolPausedError):
            await engine.close_position(db, position.id, "alice")

        assert position.status == PositionStatus.OPEN
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 0
        assert custody_repo.of(position_vault_bucket(position.id), ASSET) == 1_000

        protocol_repo.config.paused = False
        closed, _ = await engine.close_position(db, position.id, "alice")
        assert closed.status == PositionStatus.CLOSED


class TestLiquidation:
    @pytest.mark.asyncio
    async def test_liquidator_is_rewarded_and_rest_goes_to_insurance(
        self, db, make_engine, market, custody_repo, events
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        market.mark_price = 20   # 80% adverse move == threshold
        liquidated, emitted = await engine.liquidate_position(db, position.id, "keeper")

        assert liquidated.status == PositionStatus.LIQUIDATED
        assert liquidated.realized_pnl == -1_000
        assert liquidated.closed_by == "keeper"
        # reward = 1000 * 200 / 10_000 = 20
        assert custody_repo.of(wallet_bucket("keeper"), ASSET) == 20
        assert custody_repo.of(insurance_bucket(MARKET_ID), ASSET) == 980
        assert custody_repo.of(wallet_bucket("alice"), ASSET) == 0
        assert emitted[0].after["loss_bps"] == 8_000
        assert market.open_interest_long == 0

    @pytest.mark.asyncio
    async def test_below_threshold_is_rejected(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)

        market.mark_price = 21
        with pytest.raises(NotLiquidatableError):
            await engine.liquidate_position(db, position.id, "keeper")

    @pytest.mark.asyncio
    async def test_paused_protocol_blocks_liquidation(
        self, db, make_engine, market, custody_repo, protocol_repo
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine()
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)
        market.mark_price = 20
        protocol_repo.config.paused = True

        with pytest.raises(ProtocolPausedError):
            await engine.liquidate_position(db, position.id, "keeper")

        assert position.status == PositionStatus.OPEN
        assert custody_repo.of(wallet_bucket("keeper"), ASSET) == 0
        assert custody_repo.of(position_vault_bucket(position.id), ASSET) == 1_000

    @pytest.mark.asyncio
    async def test_favourable_move_is_never_liquidatable(
        self, db, make_engine, market, custody_repo
    ):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 1_000)
        engine = make_engine(liquidation_threshold_bps=0)
        position, _ = await engine.open_position(db, MARKET_ID, "alice", "SHORT", 1_000, nonce=1)

        market.mark_price = 90
        with pytest.raises(NotLiquidatableError):
            await engine.liquidate_position(db, position.id, "keeper")

    @pytest.mark.asyncio
    async def test_list_liquidatable(self, db, make_engine, market, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), ASSET, 2_000)
        engine = make_engine()
        long_pos, _ = await engine.open_position(db, MARKET_ID, "alice", "LONG", 1_000, nonce=1)
        await engine.open_position(db, MARKET_ID, "alice", "SHORT", 1_000, nonce=2)

        market.mark_price = 10
        found = await engine.list_liquidatable(db, MARKET_ID)

        assert [(p.id, loss) for p, loss in found] == [(long_pos.id, 9_000)]
