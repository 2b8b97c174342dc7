"""PoolEngine: stateful orchestrator for parimutuel rounds.

One asyncio.Lock per round serializes bets, resolution and claims on the
same round inside this process; SELECT ... FOR UPDATE on the round and bet
rows serializes across processes. Oracle reads happen before any lock is
taken and are bounded by the staleness check instead of retried.

Custody layout per round, one balance per currency:
  wallet:{owner} --gross stake--> vault:round:{id}
  claims:        vault:round:{id} --> wallet:{owner}   (clamped, fees reserved)
  collect_fees:  vault:round:{id} --> treasury:{treasury}
  close_round:   remaining vault balance --> treasury:{treasury}
"""

import asyncio
import logging
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sc_admin.domain.models import ProtocolConfig
from src.sc_admin.domain.repository import ProtocolConfigRepositoryProtocol
from src.sc_admin.infrastructure.persistence import ProtocolConfigRepository
from src.sc_clearing.domain.events import SettlementEvent
from src.sc_clearing.domain.payout import clamp_to_balance
from src.sc_clearing.infrastructure.events import EventSink, EventSinkProtocol
from src.sc_common.datetime_utils import unix_now
from src.sc_common.enums import EventType, RoundOutcome
from src.sc_common.errors import (
    AlreadyClaimedError,
    BetNotFoundError,
    InvalidStateError,
    NothingToClaimError,
    ProtocolPausedError,
    RoundNotFoundError,
    RoundNotResolvedError,
    RoundWindowError,
    UnauthorizedError,
    UnsupportedCurrencyError,
)
from src.sc_common.units import saturating_sub
from src.sc_custody.domain.models import round_vault_bucket, treasury_bucket, wallet_bucket
from src.sc_custody.domain.repository import CustodyRepositoryProtocol
from src.sc_custody.domain.service import Custody
from src.sc_custody.infrastructure.persistence import CustodyRepository
from src.sc_oracle.domain.models import PriceOracleProtocol, settle_price
from src.sc_oracle.infrastructure.factory import build_price_oracle
from src.sc_pool.domain.models import Bet, ClaimResult, PoolConfig, Round
from src.sc_pool.domain.repository import RoundRepositoryProtocol
from src.sc_pool.domain.settlement import (
    apply_bet,
    bet_entitlement,
    claim_window_open,
    new_round,
    resolve_round,
)
from src.sc_pool.infrastructure.persistence import RoundRepository

logger = logging.getLogger(__name__)

_REF_TYPE = "ROUND"


def _split_codes(value: str) -> list[str]:
    return [c.strip().upper() for c in value.split(",") if c.strip()]


def pool_config_from_settings() -> PoolConfig:
    return PoolConfig(
        currencies=tuple(_split_codes(settings.POOL_CURRENCIES)),
        discount_currencies=frozenset(_split_codes(settings.POOL_DISCOUNT_CURRENCIES)),
        entry_fee_bps=settings.POOL_ENTRY_FEE_BPS,
        discount_bps=settings.POOL_DISCOUNT_BPS,
        min_bet_usd=settings.POOL_MIN_BET_USD,
        default_duration_seconds=settings.POOL_DEFAULT_DURATION_SECONDS,
        exchange_rate_decimals=settings.EXCHANGE_RATE_DECIMALS,
        resolve_admin_only=settings.POOL_RESOLVE_ADMIN_ONLY,
        claim_window_seconds=settings.POOL_CLAIM_WINDOW_SECONDS,
    )


def _require_admin(protocol: ProtocolConfig, caller: str, action: str) -> None:
    if caller != protocol.admin:
        raise UnauthorizedError(f"{action} requires the protocol admin")


def _require_live(protocol: ProtocolConfig) -> None:
    if protocol.paused:
        raise ProtocolPausedError()


class PoolEngine:
    def __init__(
        self,
        rounds: RoundRepositoryProtocol | None = None,
        custody_repo: CustodyRepositoryProtocol | None = None,
        protocol: ProtocolConfigRepositoryProtocol | None = None,
        oracle: PriceOracleProtocol | None = None,
        events: EventSinkProtocol | None = None,
        config: PoolConfig | None = None,
        oracle_max_age: int | None = None,
        price_decimals: int | None = None,
    ) -> None:
        self._rounds: RoundRepositoryProtocol = rounds or RoundRepository()
        self._custody = Custody(custody_repo or CustodyRepository())
        self._protocol: ProtocolConfigRepositoryProtocol = protocol or ProtocolConfigRepository()
        self._oracle: PriceOracleProtocol = oracle or build_price_oracle()
        self._events: EventSinkProtocol = events or EventSink()
        self._config = config or pool_config_from_settings()
        self._oracle_max_age = (
            oracle_max_age if oracle_max_age is not None else settings.ORACLE_MAX_AGE_SECONDS
        )
        self._price_decimals = (
            price_decimals if price_decimals is not None else settings.ORACLE_PRICE_DECIMALS
        )
        self._round_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._start_lock = asyncio.Lock()

    @property
    def config(self) -> PoolConfig:
        return self._config

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _oracle_price(self) -> int:
        quote = await self._oracle.latest()
        return settle_price(
            quote,
            unix_now(),
            self._oracle_max_age,
            self._price_decimals,
            settings.ORACLE_MAX_CLOCK_SKEW_SECONDS,
        )

    async def _load_round(self, db: AsyncSession, round_id: int) -> Round:
        rnd = await self._rounds.get_round(db, round_id, for_update=True)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        return rnd

    async def _record(self, db: AsyncSession, event: SettlementEvent) -> list[SettlementEvent]:
        await self._events.record(db, event)
        return [event]

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def start_round(
        self,
        db: AsyncSession,
        caller: str,
        duration: int = 0,
        manual_price: int | None = None,
    ) -> tuple[Round, list[SettlementEvent]]:
        """Open a new round at the oracle price, or at an admin-supplied fallback price."""
        locked_price = manual_price if manual_price is not None else await self._oracle_price()
        async with self._start_lock:
            async with db.begin_nested():
                protocol = await self._protocol.get(db)
                _require_admin(protocol, caller, "start_round")
                _require_live(protocol)
                round_id = await self._protocol.allocate_round_id(db)
                rnd = new_round(round_id, locked_price, duration, unix_now(), self._config)
                await self._rounds.insert_round(db, rnd)
                events = await self._record(
                    db,
                    SettlementEvent(
                        event_type=EventType.ROUND_STARTED,
                        entity_type="round",
                        entity_id=str(rnd.id),
                        actor=caller,
                        after={
                            "locked_price": rnd.locked_price,
                            "end_time": rnd.end_time,
                            "price_source": "manual" if manual_price is not None else "oracle",
                        },
                    ),
                )
        logger.info("Round %d started at %d, ends %d", rnd.id, rnd.locked_price, rnd.end_time)
        return rnd, events

    # ------------------------------------------------------------------
    # Bet
    # ------------------------------------------------------------------

    async def place_bet(
        self,
        db: AsyncSession,
        round_id: int,
        owner: str,
        side_up: bool,
        amount: int,
        currency: str,
        exchange_rate: int | None = None,
    ) -> tuple[Round, Bet, list[SettlementEvent]]:
        currency = currency.upper()
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                protocol = await self._protocol.get(db)
                _require_live(protocol)
                rnd = await self._load_round(db, round_id)
                existing = await self._rounds.get_bet(db, round_id, owner, for_update=True)
                bet = apply_bet(
                    rnd,
                    existing,
                    owner,
                    side_up,
                    amount,
                    currency,
                    exchange_rate,
                    self._config,
                    unix_now(),
                )
                await self._custody.transfer(
                    db,
                    wallet_bucket(owner),
                    round_vault_bucket(rnd.id),
                    currency,
                    amount,
                    _REF_TYPE,
                    str(rnd.id),
                )
                await self._rounds.save_round(db, rnd)
                await self._rounds.save_bet(db, bet)
                events = await self._record(
                    db,
                    SettlementEvent(
                        event_type=EventType.BET_PLACED,
                        entity_type="bet",
                        entity_id=f"{rnd.id}:{owner}",
                        actor=owner,
                        after={
                            "side": "UP" if side_up else "DOWN",
                            "currency": currency,
                            "gross_amount": amount,
                            "stake": bet.amount,
                            "usd_value": bet.usd_value,
                            "fee_paid": bet.fee_paid,
                        },
                    ),
                )
        return rnd, bet, events

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    async def resolve(
        self,
        db: AsyncSession,
        round_id: int,
        caller: str,
        final_price: int | None = None,
    ) -> tuple[Round, list[SettlementEvent]]:
        """Settle the outcome once, after end time.

        Without final_price the oracle is read (fails closed on stale data).
        A supplied final_price is the admin's manual fallback.
        """
        manual = final_price is not None
        price = final_price if manual else await self._oracle_price()
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                protocol = await self._protocol.get(db)
                if manual or self._config.resolve_admin_only:
                    _require_admin(protocol, caller, "resolve")
                if not manual:
                    _require_live(protocol)
                rnd = await self._load_round(db, round_id)
                outcome = resolve_round(rnd, price, caller, unix_now())
                await self._rounds.save_round(db, rnd)
                events = await self._record(
                    db,
                    SettlementEvent(
                        event_type=EventType.ROUND_RESOLVED,
                        entity_type="round",
                        entity_id=str(rnd.id),
                        actor=caller,
                        before={"outcome": RoundOutcome.PENDING.value},
                        after={
                            "outcome": outcome.value,
                            "locked_price": rnd.locked_price,
                            "final_price": price,
                            "price_source": "manual" if manual else "oracle",
                        },
                    ),
                )
        logger.info(
            "Round %d resolved %s (%d -> %d)", rnd.id, outcome.value, rnd.locked_price, price
        )
        return rnd, events

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    async def claim(
        self, db: AsyncSession, round_id: int, owner: str, currency: str
    ) -> tuple[list[ClaimResult], list[SettlementEvent]]:
        currency = currency.upper()
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                rnd, bet = await self._load_claimable(db, round_id, owner)
                if currency not in rnd.pools:
                    raise UnsupportedCurrencyError(currency)
                result = await self._claim_one(db, rnd, bet, currency)
                await self._rounds.save_round(db, rnd)
                events = await self._record(db, self._claim_event(rnd, owner, [result]))
        return [result], events

    async def claim_all(
        self, db: AsyncSession, round_id: int, owner: str
    ) -> tuple[list[ClaimResult], list[SettlementEvent]]:
        """Claim every unclaimed currency that can pay out something now.

        Succeeds when at least one currency pays out something; otherwise
        NothingToClaimError and nothing is recorded.
        """
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                rnd, bet = await self._load_claimable(db, round_id, owner)
                payable: list[str] = []
                for currency in rnd.pools:
                    if bet.is_claimed(currency):
                        continue
                    entitlement = bet_entitlement(rnd, bet, currency, self._config.currency_count)
                    if await self._payable(db, rnd, currency, entitlement) > 0:
                        payable.append(currency)
                if not payable:
                    raise NothingToClaimError(round_id)
                results = [await self._claim_one(db, rnd, bet, c) for c in payable]
                await self._rounds.save_round(db, rnd)
                events = await self._record(db, self._claim_event(rnd, owner, results))
        return results, events

    async def _load_claimable(
        self, db: AsyncSession, round_id: int, owner: str
    ) -> tuple[Round, Bet]:
        _require_live(await self._protocol.get(db))
        rnd = await self._load_round(db, round_id)
        if not rnd.is_resolved:
            raise RoundNotResolvedError(round_id)
        if rnd.closed:
            raise RoundWindowError(round_id, "round is closed, claims are no longer accepted")
        bet = await self._rounds.get_bet(db, round_id, owner, for_update=True)
        if bet is None:
            raise BetNotFoundError(round_id, owner)
        return rnd, bet

    async def _payable(self, db: AsyncSession, rnd: Round, currency: str, entitlement: int) -> int:
        """Entitlement clamped to the vault balance net of uncollected fees."""
        reserved = 0 if rnd.fees_collected else rnd.pools[currency].total_fees
        balance = await self._custody.balance(db, round_vault_bucket(rnd.id), currency)
        return clamp_to_balance(entitlement, saturating_sub(balance, reserved))

    async def _claim_one(
        self, db: AsyncSession, rnd: Round, bet: Bet, currency: str
    ) -> ClaimResult:
        if bet.is_claimed(currency):
            raise AlreadyClaimedError(rnd.id, currency)
        entitlement = bet_entitlement(rnd, bet, currency, self._config.currency_count)
        if entitlement == 0:
            raise NothingToClaimError(rnd.id)

        paid = await self._custody.pay_out(
            db,
            round_vault_bucket(rnd.id),
            wallet_bucket(bet.owner),
            currency,
            await self._payable(db, rnd, currency, entitlement),
            _REF_TYPE,
            str(rnd.id),
        )
        if paid < entitlement:
            logger.warning(
                "Claim %d/%s/%s clamped: owed %d, paid %d",
                rnd.id,
                bet.owner,
                currency,
                entitlement,
                paid,
            )
        rnd.pools[currency].paid_out += paid
        await self._rounds.record_claim(db, rnd.id, bet.owner, currency, paid)
        bet.claims[currency] = paid
        return ClaimResult(currency=currency, entitlement=entitlement, paid=paid)

    @staticmethod
    def _claim_event(rnd: Round, owner: str, results: list[ClaimResult]) -> SettlementEvent:
        return SettlementEvent(
            event_type=EventType.BET_CLAIMED,
            entity_type="bet",
            entity_id=f"{rnd.id}:{owner}",
            actor=owner,
            after={
                "outcome": rnd.outcome.value,
                "claims": {r.currency: {"owed": r.entitlement, "paid": r.paid} for r in results},
            },
        )

    # ------------------------------------------------------------------
    # Fees and close-out (admin)
    # ------------------------------------------------------------------

    async def collect_fees(
        self, db: AsyncSession, round_id: int, caller: str
    ) -> tuple[dict[str, int], list[SettlementEvent]]:
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                protocol = await self._protocol.get(db)
                _require_admin(protocol, caller, "collect_fees")
                rnd = await self._load_round(db, round_id)
                if not rnd.is_resolved:
                    raise RoundNotResolvedError(round_id)
                if rnd.fees_collected:
                    raise InvalidStateError(f"fees of round {round_id} already collected")
                collected = await self._collect_fees_inner(db, rnd, protocol)
                await self._rounds.save_round(db, rnd)
                events = await self._record(
                    db,
                    SettlementEvent(
                        event_type=EventType.FEES_COLLECTED,
                        entity_type="round",
                        entity_id=str(rnd.id),
                        actor=caller,
                        after={"collected": collected, "treasury": protocol.treasury},
                    ),
                )
        return collected, events

    async def _collect_fees_inner(
        self, db: AsyncSession, rnd: Round, protocol: ProtocolConfig
    ) -> dict[str, int]:
        collected: dict[str, int] = {}
        for currency, pool in rnd.pools.items():
            collected[currency] = await self._custody.pay_out(
                db,
                round_vault_bucket(rnd.id),
                treasury_bucket(protocol.treasury),
                currency,
                pool.total_fees,
                _REF_TYPE,
                str(rnd.id),
            )
        rnd.fees_collected = True
        return collected

    async def close_round(
        self, db: AsyncSession, round_id: int, caller: str
    ) -> tuple[dict[str, int], list[SettlementEvent]]:
        """After the claim window: collect outstanding fees, sweep the vault to treasury.

        The swept amount is the rounding residual plus unclaimed entitlements.
        Claims fail once a round is closed.
        """
        async with self._round_locks[round_id]:
            async with db.begin_nested():
                protocol = await self._protocol.get(db)
                _require_admin(protocol, caller, "close_round")
                rnd = await self._load_round(db, round_id)
                if not rnd.is_resolved:
                    raise RoundNotResolvedError(round_id)
                if rnd.closed:
                    raise RoundWindowError(round_id, "round is already closed")
                if claim_window_open(rnd, self._config, unix_now()):
                    raise RoundWindowError(round_id, "claim window still open")
                fees: dict[str, int] = {}
                if not rnd.fees_collected:
                    fees = await self._collect_fees_inner(db, rnd, protocol)
                swept: dict[str, int] = {}
                for currency in rnd.pools:
                    swept[currency] = await self._custody.sweep(
                        db,
                        round_vault_bucket(rnd.id),
                        treasury_bucket(protocol.treasury),
                        currency,
                        _REF_TYPE,
                        str(rnd.id),
                    )
                rnd.closed = True
                await self._rounds.save_round(db, rnd)
                events = await self._record(
                    db,
                    SettlementEvent(
                        event_type=EventType.ROUND_CLOSED,
                        entity_type="round",
                        entity_id=str(rnd.id),
                        actor=caller,
                        after={"fees_collected": fees, "swept": swept},
                    ),
                )
        lock = self._round_locks.get(round_id)
        if lock is not None and not lock.locked():
            del self._round_locks[round_id]
        logger.info("Round %d closed, swept %s", round_id, swept)
        return swept, events


_engine: PoolEngine | None = None


def get_pool_engine() -> PoolEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = PoolEngine()
    return _engine
