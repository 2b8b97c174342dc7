"""In-memory fakes for the settlement engines.

Each fake conforms to the matching repository Protocol. Objects are stored
by reference, so a failed operation is not rolled back here; tests assert
on state only after successful calls or on errors raised before mutation.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.sc_admin.domain.models import ProtocolConfig
from src.sc_common.errors import AlreadyClaimedError, DuplicateEntityError, InsufficientFundsError
from src.sc_custody.domain.models import CustodyAccount, CustodyEntry
from src.sc_futures.domain.models import Position
from src.sc_market.domain.models import Market
from src.sc_pool.domain.models import Bet, Round

ADMIN = "admin"
TREASURY = "treasury-1"


class FakeSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.savepoints = 0

    @asynccontextmanager
    async def begin_nested(self) -> AsyncIterator[None]:
        self.savepoints += 1
        yield


class InMemoryCustodyRepository:
    def __init__(self) -> None:
        self.balances: dict[tuple[str, str], int] = {}
        self.entries: list[CustodyEntry] = []

    def seed(self, bucket: str, asset: str, amount: int) -> None:
        self.balances[(bucket, asset)] = self.balances.get((bucket, asset), 0) + amount

    def of(self, bucket: str, asset: str) -> int:
        return self.balances.get((bucket, asset), 0)

    def total(self, asset: str) -> int:
        return sum(v for (_, a), v in self.balances.items() if a == asset)

    async def get_balance(
        self, db: Any, bucket: str, asset: str, *, for_update: bool = False
    ) -> int:
        return self.of(bucket, asset)

    async def list_accounts(self, db: Any, bucket: str) -> list[CustodyAccount]:
        return [
            CustodyAccount(bucket=b, asset=a, balance=v)
            for (b, a), v in sorted(self.balances.items())
            if b == bucket
        ]

    def _append(
        self, bucket: str, asset: str, amount: int, entry_type: str,
        ref_type: str | None, ref_id: str | None, description: str | None,
    ) -> CustodyEntry:
        entry = CustodyEntry(
            id=len(self.entries) + 1,
            bucket=bucket,
            asset=asset,
            entry_type=entry_type,
            amount=amount,
            balance_after=self.of(bucket, asset),
            reference_type=ref_type,
            reference_id=ref_id,
            description=description,
        )
        self.entries.append(entry)
        return entry

    async def credit(
        self, db: Any, bucket: str, asset: str, amount: int, entry_type: str,
        ref_type: str | None, ref_id: str | None, description: str | None,
    ) -> CustodyEntry:
        self.seed(bucket, asset, amount)
        return self._append(bucket, asset, amount, entry_type, ref_type, ref_id, description)

    async def debit(
        self, db: Any, bucket: str, asset: str, amount: int, entry_type: str,
        ref_type: str | None, ref_id: str | None, description: str | None,
    ) -> CustodyEntry:
        available = self.of(bucket, asset)
        if available < amount:
            raise InsufficientFundsError(bucket, amount, available)
        self.balances[(bucket, asset)] = available - amount
        return self._append(bucket, asset, -amount, entry_type, ref_type, ref_id, description)

    async def list_entries(
        self, db: Any, bucket: str, cursor_id: int | None, limit: int, asset: str | None
    ) -> list[CustodyEntry]:
        found = [
            e for e in reversed(self.entries)
            if e.bucket == bucket
            and (cursor_id is None or e.id < cursor_id)
            and (asset is None or e.asset == asset)
        ]
        return found[:limit]


class InMemoryProtocolConfigRepository:
    def __init__(self, admin: str = ADMIN, treasury: str = TREASURY) -> None:
        self.config = ProtocolConfig(
            admin=admin, treasury=treasury, paused=False, current_round_id=1
        )

    async def get(self, db: Any) -> ProtocolConfig:
        return self.config

    async def set_paused(self, db: Any, paused: bool) -> ProtocolConfig:
        self.config = ProtocolConfig(
            admin=self.config.admin,
            treasury=self.config.treasury,
            paused=paused,
            current_round_id=self.config.current_round_id,
        )
        return self.config

    async def set_treasury(self, db: Any, treasury: str) -> ProtocolConfig:
        self.config = ProtocolConfig(
            admin=self.config.admin,
            treasury=treasury,
            paused=self.config.paused,
            current_round_id=self.config.current_round_id,
        )
        return self.config

    async def allocate_round_id(self, db: Any) -> int:
        round_id = self.config.current_round_id
        self.config.current_round_id += 1
        return round_id


class InMemoryMarketRepository:
    def __init__(self) -> None:
        self.markets: dict[str, Market] = {}

    async def get_market_by_id(
        self, db: Any, market_id: str, *, for_update: bool = False
    ) -> Market | None:
        return self.markets.get(market_id)

    async def list_markets(
        self, db: Any, cursor_ts: str | None, cursor_id: str | None, limit: int
    ) -> list[Market]:
        return list(self.markets.values())[:limit]

    async def insert_market(self, db: Any, market: Market) -> Market:
        if market.id in self.markets:
            raise DuplicateEntityError(f"market {market.id}")
        market.created_at = datetime.now(UTC)
        self.markets[market.id] = market
        return market

    async def save_market(self, db: Any, market: Market) -> None:
        self.markets[market.id] = market


class InMemoryPositionRepository:
    def __init__(self) -> None:
        self.positions: dict[str, Position] = {}

    async def get_position(
        self, db: Any, position_id: str, *, for_update: bool = False
    ) -> Position | None:
        return self.positions.get(position_id)

    async def insert_position(self, db: Any, position: Position) -> Position:
        if position.id in self.positions:
            raise DuplicateEntityError(f"position {position.id}")
        self.positions[position.id] = position
        return position

    async def save_position(self, db: Any, position: Position) -> None:
        self.positions[position.id] = position

    async def list_positions(
        self, db: Any, owner: str | None, market_id: str | None, status: str | None, limit: int
    ) -> list[Position]:
        found = [
            p for p in self.positions.values()
            if (owner is None or p.owner == owner)
            and (market_id is None or p.market_id == market_id)
            and (status is None or p.status.value == status)
        ]
        return found[:limit]

    async def list_open_positions(self, db: Any, market_id: str) -> list[Position]:
        return [p for p in self.positions.values() if p.market_id == market_id and p.is_open]


class InMemoryRoundRepository:
    def __init__(self) -> None:
        self.rounds: dict[int, Round] = {}
        self.bets: dict[tuple[int, str], Bet] = {}

    async def get_round(self, db: Any, round_id: int, *, for_update: bool = False) -> Round | None:
        return self.rounds.get(round_id)

    async def list_rounds(self, db: Any, limit: int) -> list[Round]:
        return sorted(self.rounds.values(), key=lambda r: r.id, reverse=True)[:limit]

    async def insert_round(self, db: Any, rnd: Round) -> None:
        if rnd.id in self.rounds:
            raise DuplicateEntityError(f"round {rnd.id}")
        self.rounds[rnd.id] = rnd

    async def save_round(self, db: Any, rnd: Round) -> None:
        self.rounds[rnd.id] = rnd

    async def get_bet(
        self, db: Any, round_id: int, owner: str, *, for_update: bool = False
    ) -> Bet | None:
        return self.bets.get((round_id, owner))

    async def save_bet(self, db: Any, bet: Bet) -> None:
        self.bets[(bet.round_id, bet.owner)] = bet

    async def record_claim(
        self, db: Any, round_id: int, owner: str, currency: str, amount: int
    ) -> None:
        bet = self.bets[(round_id, owner)]
        if currency in bet.claims:
            raise AlreadyClaimedError(round_id, currency)


class RecordingEventSink:
    def __init__(self) -> None:
        self.recorded: list[Any] = []
        self.published: list[Any] = []

    async def record(self, db: Any, event: Any) -> None:
        self.recorded.append(event)

    async def publish(self, events: Any) -> None:
        self.published.extend(events)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.recorded]


@pytest.fixture
def db() -> FakeSession:
    return FakeSession()


@pytest.fixture
def custody_repo() -> InMemoryCustodyRepository:
    return InMemoryCustodyRepository()


@pytest.fixture
def protocol_repo() -> InMemoryProtocolConfigRepository:
    return InMemoryProtocolConfigRepository()


@pytest.fixture
def market_repo() -> InMemoryMarketRepository:
    return InMemoryMarketRepository()


@pytest.fixture
def position_repo() -> InMemoryPositionRepository:
    return InMemoryPositionRepository()


@pytest.fixture
def round_repo() -> InMemoryRoundRepository:
    return InMemoryRoundRepository()


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()
