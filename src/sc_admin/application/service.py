"""Admin application service: protocol switches and emergency paths.

Every method requires the stored protocol admin. Round operations delegate
to PoolEngine so they share its per-round locking.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_admin.domain.models import ProtocolConfig
from src.sc_admin.domain.repository import ProtocolConfigRepositoryProtocol
from src.sc_admin.infrastructure.persistence import ProtocolConfigRepository
from src.sc_clearing.domain.events import SettlementEvent
from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.database import unit_of_work
from src.sc_common.enums import EventType
from src.sc_common.errors import InvalidInputError, UnauthorizedError
from src.sc_custody.domain.models import insurance_bucket, treasury_bucket, wallet_bucket
from src.sc_custody.domain.repository import CustodyRepositoryProtocol
from src.sc_custody.domain.service import Custody
from src.sc_custody.infrastructure.persistence import CustodyRepository
from src.sc_pool.engine.engine import PoolEngine, get_pool_engine

logger = logging.getLogger(__name__)

# Only protocol-held buckets can be drained; user wallets never.
_DRAINABLE_PREFIXES = ("vault:", "insurance:")


def _config_dict(config: ProtocolConfig) -> dict[str, Any]:
    return {
        "admin": config.admin,
        "treasury": config.treasury,
        "paused": config.paused,
        "current_round_id": config.current_round_id,
    }


class AdminService:
    def __init__(
        self,
        protocol: ProtocolConfigRepositoryProtocol | None = None,
        custody_repo: CustodyRepositoryProtocol | None = None,
        events: EventSinkProtocol | None = None,
        pool_engine: PoolEngine | None = None,
    ) -> None:
        self._protocol: ProtocolConfigRepositoryProtocol = protocol or ProtocolConfigRepository()
        self._custody = Custody(custody_repo or CustodyRepository())
        self._events: EventSinkProtocol = events or EventSink()
        self._pool_engine = pool_engine

    @property
    def pool_engine(self) -> PoolEngine:
        return self._pool_engine or get_pool_engine()

    async def _require_admin(self, db: AsyncSession, caller: str) -> ProtocolConfig:
        config = await self._protocol.get(db)
        if caller != config.admin:
            raise UnauthorizedError("protocol admin required")
        return config

    async def get_config(self, db: AsyncSession) -> dict[str, Any]:
        return _config_dict(await self._protocol.get(db))

    async def set_paused(self, db: AsyncSession, caller: str, paused: bool) -> dict[str, Any]:
        async with unit_of_work(db):
            before = await self._require_admin(db, caller)
            after = await self._protocol.set_paused(db, paused)
            event = SettlementEvent(
                event_type=EventType.PROTOCOL_PAUSED if paused else EventType.PROTOCOL_UNPAUSED,
                entity_type="protocol",
                entity_id="protocol",
                actor=caller,
                before={"paused": before.paused},
                after={"paused": after.paused},
            )
            await self._events.record(db, event)
        await self._events.publish([event])
        logger.warning("Protocol %s by %s", "paused" if paused else "unpaused", caller)
        return _config_dict(after)

    async def rotate_treasury(
        self, db: AsyncSession, caller: str, treasury: str
    ) -> dict[str, Any]:
        if not treasury.strip():
            raise InvalidInputError("treasury must not be empty")
        async with unit_of_work(db):
            before = await self._require_admin(db, caller)
            after = await self._protocol.set_treasury(db, treasury.strip())
            event = SettlementEvent(
                event_type=EventType.TREASURY_ROTATED,
                entity_type="protocol",
                entity_id="protocol",
                actor=caller,
                before={"treasury": before.treasury},
                after={"treasury": after.treasury},
            )
            await self._events.record(db, event)
        await self._events.publish([event])
        return _config_dict(after)

    async def fund_insurance(
        self, db: AsyncSession, caller: str, market_id: str, amount: int
    ) -> dict[str, Any]:
        """Seed a market's insurance bucket from the admin wallet (pays profits beyond a vault)."""
        asset = settings.FUTURES_COLLATERAL_ASSET
        async with unit_of_work(db):
            await self._require_admin(db, caller)
            await self._custody.transfer(
                db, wallet_bucket(caller), insurance_bucket(market_id), asset, amount,
                "INSURANCE", market_id,
            )
            balance = await self._custody.balance(db, insurance_bucket(market_id), asset)
        return {"market_id": market_id, "asset": asset, "funded": amount, "balance": balance}

    async def drain(
        self, db: AsyncSession, caller: str, bucket: str, asset: str
    ) -> dict[str, Any]:
        """Emergency: move a protocol-held bucket's entire balance to the treasury."""
        if not bucket.startswith(_DRAINABLE_PREFIXES):
            raise InvalidInputError(f"bucket {bucket!r} cannot be drained")
        async with unit_of_work(db):
            config = await self._require_admin(db, caller)
            destination = treasury_bucket(config.treasury)
            moved = await self._custody.sweep(db, bucket, destination, asset, "DRAIN", bucket)
            event = SettlementEvent(
                event_type=EventType.CUSTODY_DRAINED,
                entity_type="custody",
                entity_id=bucket,
                actor=caller,
                after={"asset": asset, "amount": moved, "destination": destination},
            )
            await self._events.record(db, event)
        await self._events.publish([event])
        logger.warning("Drained %d %s from %s to %s", moved, asset, bucket, destination)
        return {"bucket": bucket, "asset": asset, "moved": moved, "destination": destination}

    # ------------------------------------------------------------------
    # Round operations
    # ------------------------------------------------------------------

    async def force_resolve(
        self, db: AsyncSession, caller: str, round_id: int, final_price: int
    ) -> dict[str, Any]:
        async with unit_of_work(db):
            rnd, events = await self.pool_engine.resolve(db, round_id, caller, final_price)
        await self._events.publish(events)
        return {"round_id": rnd.id, "outcome": rnd.outcome.value, "final_price": rnd.final_price}

    async def collect_fees(self, db: AsyncSession, caller: str, round_id: int) -> dict[str, Any]:
        async with unit_of_work(db):
            collected, events = await self.pool_engine.collect_fees(db, round_id, caller)
        await self._events.publish(events)
        return {"round_id": round_id, "collected": collected}

    async def close_round(self, db: AsyncSession, caller: str, round_id: int) -> dict[str, Any]:
        async with unit_of_work(db):
            swept, events = await self.pool_engine.close_round(db, round_id, caller)
        await self._events.publish(events)
        return {"round_id": round_id, "swept": swept}
