"""Custody primitive and the funding service over the in-memory repository."""

import pytest

from src.sc_common.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    UnsupportedCurrencyError,
)
from src.sc_custody.application.service import CustodyApplicationService
from src.sc_custody.domain.models import (
    insurance_bucket,
    position_vault_bucket,
    round_vault_bucket,
    treasury_bucket,
    wallet_bucket,
)
from src.sc_custody.domain.service import Custody


class TestBuckets:
    def test_names(self) -> None:
        assert wallet_bucket("alice") == "wallet:alice"
        assert treasury_bucket("t") == "treasury:t"
        assert position_vault_bucket("position:a:m:1") == "vault:position:position:a:m:1"
        assert insurance_bucket("market:GOLD") == "insurance:market:GOLD"
        assert round_vault_bucket(7) == "vault:round:7"


class TestCustody:
    @pytest.mark.asyncio
    async def test_transfer_moves_exact_amount(self, db, custody_repo):
        custody_repo.seed("a", "SOL", 100)
        await Custody(custody_repo).transfer(db, "a", "b", "SOL", 60)

        assert custody_repo.of("a", "SOL") == 40
        assert custody_repo.of("b", "SOL") == 60
        assert [e.amount for e in custody_repo.entries] == [-60, 60]

    @pytest.mark.asyncio
    async def test_transfer_zero_is_noop(self, db, custody_repo):
        await Custody(custody_repo).transfer(db, "a", "b", "SOL", 0)
        assert custody_repo.entries == []

    @pytest.mark.asyncio
    async def test_transfer_short_balance_raises(self, db, custody_repo):
        custody_repo.seed("a", "SOL", 10)
        with pytest.raises(InsufficientFundsError):
            await Custody(custody_repo).transfer(db, "a", "b", "SOL", 11)

    @pytest.mark.asyncio
    async def test_pay_out_clamps(self, db, custody_repo):
        custody_repo.seed("vault", "SOL", 70)
        paid = await Custody(custody_repo).pay_out(db, "vault", "w", "SOL", 100)

        assert paid == 70
        assert custody_repo.of("w", "SOL") == 70

    @pytest.mark.asyncio
    async def test_sweep_moves_everything(self, db, custody_repo):
        custody_repo.seed("vault", "SOL", 33)
        moved = await Custody(custody_repo).sweep(db, "vault", "ins", "SOL")

        assert moved == 33
        assert custody_repo.of("vault", "SOL") == 0

    @pytest.mark.asyncio
    async def test_credit_rejects_non_positive(self, db, custody_repo):
        with pytest.raises(InvalidAmountError):
            await Custody(custody_repo).credit(db, "a", "SOL", 0)


class TestFundingService:
    @pytest.mark.asyncio
    async def test_deposit_then_withdraw(self, db, custody_repo):
        svc = CustodyApplicationService(repo=custody_repo)

        dep = await svc.deposit(db, "alice", "USDC", 5_000_000)
        wd = await svc.withdraw(db, "alice", "USDC", 1_500_000)

        assert dep.balance == 5_000_000
        assert wd.balance == 3_500_000
        assert wd.balance_display == "3.500000"
        assert db.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_withdraw_more_than_balance(self, db, custody_repo):
        svc = CustodyApplicationService(repo=custody_repo)
        with pytest.raises(InsufficientFundsError):
            await svc.withdraw(db, "alice", "USDC", 1)
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_asset(self, db, custody_repo):
        svc = CustodyApplicationService(repo=custody_repo)
        with pytest.raises(UnsupportedCurrencyError):
            await svc.deposit(db, "alice", "DOGE", 1)

    @pytest.mark.asyncio
    async def test_balance_lists_wallet_assets(self, db, custody_repo):
        custody_repo.seed(wallet_bucket("alice"), "SOL", 10)
        custody_repo.seed(wallet_bucket("alice"), "USDC", 20)
        custody_repo.seed(wallet_bucket("bob"), "USDC", 30)

        resp = await CustodyApplicationService(repo=custody_repo).get_balance(db, "alice")

        assert {b.asset: b.balance for b in resp.balances} == {"SOL": 10, "USDC": 20}

    @pytest.mark.asyncio
    async def test_entries_page(self, db, custody_repo):
        svc = CustodyApplicationService(repo=custody_repo)
        for _ in range(3):
            await svc.deposit(db, "alice", "SOL", 1)

        page = await svc.list_entries(db, "alice", cursor=None, limit=2, asset=None)

        assert len(page.items) == 2
        assert page.has_more is True
