"""AdminService: pause switch, treasury rotation, insurance funding and drains."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sc_admin.application.service import AdminService
from src.sc_common.enums import EventType
from src.sc_common.errors import InvalidInputError, UnauthorizedError
from src.sc_custody.domain.models import (
    insurance_bucket,
    round_vault_bucket,
    treasury_bucket,
    wallet_bucket,
)

ADMIN = "admin"


@pytest.fixture
def pool_engine() -> MagicMock:
    return MagicMock()


@pytest.fixture
def service(protocol_repo, custody_repo, events, pool_engine) -> AdminService:
    return AdminService(
        protocol=protocol_repo, custody_repo=custody_repo, events=events, pool_engine=pool_engine
    )


class TestPause:
    @pytest.mark.asyncio
    async def test_pause_and_unpause(self, db, service, protocol_repo, events):
        paused = await service.set_paused(db, ADMIN, True)
        assert paused["paused"] is True
        assert protocol_repo.config.paused is True

        resumed = await service.set_paused(db, ADMIN, False)
        assert resumed["paused"] is False
        assert events.types() == [
            EventType.PROTOCOL_PAUSED.value,
            EventType.PROTOCOL_UNPAUSED.value,
        ]

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, db, service, protocol_repo):
        with pytest.raises(UnauthorizedError):
            await service.set_paused(db, "alice", True)
        assert protocol_repo.config.paused is False
        db.rollback.assert_awaited_once()


class TestTreasury:
    @pytest.mark.asyncio
    async def test_rotation_records_old_and_new(self, db, service, events):
        result = await service.rotate_treasury(db, ADMIN, " treasury-2 ")

        assert result["treasury"] == "treasury-2"
        assert events.recorded[0].before == {"treasury": "treasury-1"}

    @pytest.mark.asyncio
    async def test_blank_treasury(self, db, service):
        with pytest.raises(InvalidInputError):
            await service.rotate_treasury(db, ADMIN, "   ")


class TestCustodyPaths:
    @pytest.mark.asyncio
    async def test_fund_insurance_from_admin_wallet(self, db, service, custody_repo):
        custody_repo.seed(wallet_bucket(ADMIN), "SOL", 1_000)

        result = await service.fund_insurance(db, ADMIN, "market:GOLD", 400)

        assert result["balance"] == 400
        assert custody_repo.of(insurance_bucket("market:GOLD"), "SOL") == 400
        assert custody_repo.of(wallet_bucket(ADMIN), "SOL") == 600

    @pytest.mark.asyncio
    async def test_drain_vault_to_treasury(self, db, service, custody_repo, events):
        custody_repo.seed(round_vault_bucket(3), "USDC", 77)

        result = await service.drain(db, ADMIN, round_vault_bucket(3), "USDC")

        assert result["moved"] == 77
        assert custody_repo.of(treasury_bucket("treasury-1"), "USDC") == 77
        assert events.types() == [EventType.CUSTODY_DRAINED.value]

    @pytest.mark.asyncio
    async def test_wallets_cannot_be_drained(self, db, service, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), "USDC", 77)
        with pytest.raises(InvalidInputError):
            await service.drain(db, ADMIN, wallet_bucket("alice"), "USDC")
        assert custody_repo.of(wallet_bucket("alice"), "USDC") == 77


class TestRoundDelegation:
    @pytest.mark.asyncio
    async def test_force_resolve_passes_price(self, db, service, pool_engine, events):
        rnd = MagicMock(id=4, final_price=9_000)
        rnd.outcome.value = "DOWN"
        pool_engine.resolve = AsyncMock(return_value=(rnd, ["evt"]))

        result = await service.force_resolve(db, ADMIN, 4, 9_000)

        pool_engine.resolve.assert_awaited_once_with(db, 4, ADMIN, 9_000)
        assert result == {"round_id": 4, "outcome": "DOWN", "final_price": 9_000}
        assert events.published == ["evt"]
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_round(self, db, service, pool_engine):
        pool_engine.close_round = AsyncMock(return_value=({"USDC": 5}, []))

        result = await service.close_round(db, ADMIN, 4)

        assert result == {"round_id": 4, "swept": {"USDC": 5}}
