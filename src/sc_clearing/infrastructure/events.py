"""Event sink: persist inside the caller's transaction, publish after commit.

The settlement_events row is the source of truth. Redis publishing is a
best-effort fan-out for liquidation and resolution monitors.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_clearing.domain.events import SettlementEvent
from src.sc_common.redis_client import get_redis

logger = logging.getLogger(__name__)

_INSERT_EVENT_SQL = text("""
    INSERT INTO settlement_events
        (event_type, entity_type, entity_id, actor, before_state, after_state)
    VALUES
        (:event_type, :entity_type, :entity_id, :actor, :before_state, :after_state)
""")


class EventSinkProtocol(Protocol):
    async def record(self, db: AsyncSession, event: SettlementEvent) -> None: ...

    async def publish(self, events: Iterable[SettlementEvent]) -> None: ...


async def write_event(db: AsyncSession, event: SettlementEvent) -> None:
    """Insert one row into settlement_events within the caller's transaction."""
    await db.execute(
        _INSERT_EVENT_SQL,
        {
            "event_type": event.event_type.value,
            "entity_type": event.entity_type,
            "entity_id": event.entity_id,
            "actor": event.actor,
            "before_state": json.dumps(event.before) if event.before is not None else None,
            "after_state": json.dumps(event.after),
        },
    )


class EventSink:
    """Concrete sink: PostgreSQL row + Redis pub/sub."""

    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.EVENTS_CHANNEL

    async def record(self, db: AsyncSession, event: SettlementEvent) -> None:
        await write_event(db, event)
        logger.info(
            "event %s %s=%s actor=%s",
            event.event_type.value,
            event.entity_type,
            event.entity_id,
            event.actor,
        )

    async def publish(self, events: Iterable[SettlementEvent]) -> None:
        payloads: list[dict[str, Any]] = [e.to_payload() for e in events]
        if not payloads:
            return
        try:
            redis = await get_redis()
            for payload in payloads:
                await redis.publish(self._channel, json.dumps(payload))
        except Exception:
            logger.warning(
                "Failed to publish %d settlement events to %s",
                len(payloads),
                self._channel,
                exc_info=True,
            )
