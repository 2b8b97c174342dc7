"""FuturesEngine: stateful orchestrator for isolated-margin 1x positions.

One asyncio.Lock per market serializes open / close / liquidate on the
same market inside this process; SELECT ... FOR UPDATE on the market and
position rows serializes across processes. Every operation runs inside a
savepoint and leaves the commit to the application service.

Custody layout per position:
  wallet:{owner} --deposit--> vault:position:{id} --fee--> treasury:{treasury}
  close:      vault (then insurance:{market} for profit beyond the vault) --> wallet:{owner}
  liquidate:  vault --reward--> wallet:{liquidator}, remainder --> insurance:{market}
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_admin.domain.models import ProtocolConfig
from src.sc_admin.domain.repository import ProtocolConfigRepositoryProtocol
from src.sc_admin.infrastructure.persistence import ProtocolConfigRepository
from src.sc_clearing.domain.events import SettlementEvent
from src.sc_clearing.domain.fee import RatioDiscount
from src.sc_clearing.domain.payout import clamp_to_balance, loss_bps, split_payout
from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.datetime_utils import unix_now
from src.sc_common.enums import Direction, EventType, PositionStatus
from src.sc_common.errors import (
    InvalidAmountError,
    MarketNotFoundError,
    OracleUnavailableError,
    PositionNotFoundError,
    ProtocolPausedError,
)
from src.sc_common.id_generator import generate_nonce
from src.sc_custody.domain.models import (
    insurance_bucket,
    position_vault_bucket,
    treasury_bucket,
    wallet_bucket,
)
from src.sc_custody.domain.repository import CustodyRepositoryProtocol
from src.sc_custody.domain.service import Custody
from src.sc_custody.infrastructure.persistence import CustodyRepository
from src.sc_futures.domain.models import Position
from src.sc_futures.domain.repository import PositionRepositoryProtocol
from src.sc_futures.domain.transitions import (
    close_position,
    liquidate_position,
    open_position,
    parse_direction,
)
from src.sc_futures.infrastructure.persistence import PositionRepository
from src.sc_market.domain.models import Market
from src.sc_market.domain.repository import MarketRepositoryProtocol
from src.sc_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)

_REF_TYPE = "POSITION"


@dataclass(frozen=True)
class FuturesConfig:
    asset: str
    taker_fee_bps: int
    discount: RatioDiscount
    liquidation_threshold_bps: int
    liquidator_reward_bps: int
    mark_max_age_seconds: int = 0     # 0 disables the mark freshness check

    @classmethod
    def from_settings(cls) -> "FuturesConfig":
        return cls(
            asset=settings.FUTURES_COLLATERAL_ASSET,
            taker_fee_bps=settings.TAKER_FEE_BPS,
            discount=RatioDiscount(
                settings.FUTURES_DISCOUNT_NUMERATOR, settings.FUTURES_DISCOUNT_DENOMINATOR
            ),
            liquidation_threshold_bps=settings.LIQUIDATION_THRESHOLD_BPS,
            liquidator_reward_bps=settings.LIQUIDATOR_REWARD_BPS,
            mark_max_age_seconds=settings.FUTURES_MARK_MAX_AGE_SECONDS,
        )


class FuturesEngine:
    def __init__(
        self,
        positions: PositionRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        custody_repo: CustodyRepositoryProtocol | None = None,
        protocol: ProtocolConfigRepositoryProtocol | None = None,
        events: EventSinkProtocol | None = None,
        config: FuturesConfig | None = None,
    ) -> None:
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._custody = Custody(custody_repo or CustodyRepository())
        self._protocol: ProtocolConfigRepositoryProtocol = protocol or ProtocolConfigRepository()
        self._events: EventSinkProtocol = events or EventSink()
        self._config = config or FuturesConfig.from_settings()
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def config(self) -> FuturesConfig:
        return self._config

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_market(self, db: AsyncSession, market_id: str) -> Market:
        market = await self._markets.get_market_by_id(db, market_id, for_update=True)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def _load_position(
        self, db: AsyncSession, position_id: str, *, for_update: bool = False
    ) -> Position:
        position = await self._positions.get_position(db, position_id, for_update=for_update)
        if position is None:
            raise PositionNotFoundError(position_id)
        return position

    async def _ensure_not_paused(self, db: AsyncSession) -> ProtocolConfig:
        protocol = await self._protocol.get(db)
        if protocol.paused:
            raise ProtocolPausedError()
        return protocol

    def _check_mark_fresh(self, market: Market, now: int) -> None:
        max_age = self._config.mark_max_age_seconds
        if max_age > 0 and now - market.last_price_update > max_age:
            raise OracleUnavailableError(
                f"mark price of {market.id} is {now - market.last_price_update}s old"
            )

    # ------------------------------------------------------------------
    # Open
    # ------------------------------------------------------------------

    async def open_position(
        self,
        db: AsyncSession,
        market_id: str,
        owner: str,
        direction: Direction | str,
        deposit: int,
        use_discount: bool = False,
        nonce: int | None = None,
    ) -> tuple[Position, list[SettlementEvent]]:
        side = parse_direction(direction)
        if deposit <= 0:
            raise InvalidAmountError(deposit)
        async with self._market_locks[market_id]:
            async with db.begin_nested():
                return await self._open_inner(
                    db, market_id, owner, side, deposit, use_discount, nonce
                )

    async def _open_inner(
        self,
        db: AsyncSession,
        market_id: str,
        owner: str,
        direction: Direction,
        deposit: int,
        use_discount: bool,
        nonce: int | None,
    ) -> tuple[Position, list[SettlementEvent]]:
        protocol = await self._ensure_not_paused(db)
        market = await self._load_market(db, market_id)
        cfg = self._config

        position = open_position(
            market,
            owner,
            direction,
            deposit,
            nonce if nonce is not None else generate_nonce(),
            cfg.taker_fee_bps,
            cfg.discount if use_discount else None,
            unix_now(),
        )
        position = await self._positions.insert_position(db, position)

        vault = position_vault_bucket(position.id)
        await self._custody.transfer(
            db, wallet_bucket(owner), vault, cfg.asset, deposit, _REF_TYPE, position.id
        )
        await self._custody.transfer(
            db,
            vault,
            treasury_bucket(protocol.treasury),
            cfg.asset,
            position.fee_paid,
            _REF_TYPE,
            position.id,
        )
        await self._markets.save_market(db, market)

        event = SettlementEvent(
            event_type=EventType.POSITION_OPENED,
            entity_type="position",
            entity_id=position.id,
            actor=owner,
            after={
                "market_id": market.id,
                "direction": direction.value,
                "deposit": deposit,
                "fee": position.fee_paid,
                "collateral": position.collateral,
                "entry_price": position.entry_price,
            },
        )
        await self._events.record(db, event)
        logger.info(
            "Opened %s %s on %s: collateral=%d fee=%d entry=%d",
            position.id,
            direction.value,
            market.id,
            position.collateral,
            position.fee_paid,
            position.entry_price,
        )
        return position, [event]

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    async def close_position(
        self, db: AsyncSession, position_id: str, caller: str
    ) -> tuple[Position, list[SettlementEvent]]:
        existing = await self._load_position(db, position_id)
        async with self._market_locks[existing.market_id]:
            async with db.begin_nested():
                return await self._close_inner(db, position_id, caller)

    async def _close_inner(
        self, db: AsyncSession, position_id: str, caller: str
    ) -> tuple[Position, list[SettlementEvent]]:
        await self._ensure_not_paused(db)
        position = await self._load_position(db, position_id, for_update=True)
        market = await self._load_market(db, position.market_id)
        now = unix_now()
        quote = close_position(position, market, caller, now)
        self._check_mark_fresh(market, now)

        asset = self._config.asset
        vault = position_vault_bucket(position.id)
        insurance = insurance_bucket(market.id)
        wallet = wallet_bucket(position.owner)
        split = split_payout(
            quote.payout,
            await self._custody.balance(db, vault, asset),
            await self._custody.balance(db, insurance, asset),
        )
        paid = await self._custody.pay_out(
            db, vault, wallet, asset, split.primary, _REF_TYPE, position.id
        )
        paid += await self._custody.pay_out(
            db, insurance, wallet, asset, split.secondary, _REF_TYPE, position.id
        )
        retained = await self._custody.sweep(db, vault, insurance, asset, _REF_TYPE, position.id)
        if paid < quote.payout:
            logger.warning(
                "Close of %s clamped: owed %d, paid %d", position.id, quote.payout, paid
            )

        position.payout = paid
        await self._positions.save_position(db, position)
        await self._markets.save_market(db, market)

        event = SettlementEvent(
            event_type=EventType.POSITION_CLOSED,
            entity_type="position",
            entity_id=position.id,
            actor=caller,
            before={"status": PositionStatus.OPEN.value},
            after={
                "status": position.status.value,
                "exit_price": position.exit_price,
                "pnl": quote.pnl,
                "payout": quote.payout,
                "transferred": paid,
                "retained_by_insurance": retained,
            },
        )
        await self._events.record(db, event)
        return position, [event]

    # ------------------------------------------------------------------
    # Liquidate
    # ------------------------------------------------------------------

    async def liquidate_position(
        self, db: AsyncSession, position_id: str, liquidator: str
    ) -> tuple[Position, list[SettlementEvent]]:
        existing = await self._load_position(db, position_id)
        async with self._market_locks[existing.market_id]:
            async with db.begin_nested():
                return await self._liquidate_inner(db, position_id, liquidator)

    async def _liquidate_inner(
        self, db: AsyncSession, position_id: str, liquidator: str
    ) -> tuple[Position, list[SettlementEvent]]:
        await self._ensure_not_paused(db)
        position = await self._load_position(db, position_id, for_update=True)
        market = await self._load_market(db, position.market_id)
        now = unix_now()
        cfg = self._config
        quote = liquidate_position(
            position,
            market,
            liquidator,
            cfg.liquidation_threshold_bps,
            cfg.liquidator_reward_bps,
            now,
        )
        self._check_mark_fresh(market, now)

        vault = position_vault_bucket(position.id)
        reward = clamp_to_balance(quote.reward, await self._custody.balance(db, vault, cfg.asset))
        paid = await self._custody.pay_out(
            db, vault, wallet_bucket(liquidator), cfg.asset, reward, _REF_TYPE, position.id
        )
        retained = await self._custody.sweep(
            db, vault, insurance_bucket(market.id), cfg.asset, _REF_TYPE, position.id
        )

        position.payout = paid
        await self._positions.save_position(db, position)
        await self._markets.save_market(db, market)

        event = SettlementEvent(
            event_type=EventType.POSITION_LIQUIDATED,
            entity_type="position",
            entity_id=position.id,
            actor=liquidator,
            before={"status": PositionStatus.OPEN.value},
            after={
                "status": position.status.value,
                "exit_price": position.exit_price,
                "loss_bps": quote.loss_bps,
                "reward": paid,
                "retained_by_insurance": retained,
            },
        )
        await self._events.record(db, event)
        logger.info(
            "Liquidated %s at %d (loss %d bps) by %s, reward=%d",
            position.id,
            market.mark_price,
            quote.loss_bps,
            liquidator,
            paid,
        )
        return position, [event]

    # ------------------------------------------------------------------
    # Monitor support
    # ------------------------------------------------------------------

    async def list_liquidatable(
        self, db: AsyncSession, market_id: str
    ) -> list[tuple[Position, int]]:
        """Open positions whose adverse move has reached the threshold, with their loss bps."""
        market = await self._markets.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        threshold = self._config.liquidation_threshold_bps
        found: list[tuple[Position, int]] = []
        for position in await self._positions.list_open_positions(db, market_id):
            loss = loss_bps(position.direction, position.entry_price, market.mark_price)
            if loss > 0 and loss >= threshold:
                found.append((position, loss))
        return found


_engine: FuturesEngine | None = None


def get_futures_engine() -> FuturesEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = FuturesEngine()
    return _engine
