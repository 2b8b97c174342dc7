"""Repository SQL edge cases using a MagicMock AsyncSession."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sc_common.errors import AlreadyClaimedError, InsufficientFundsError
from src.sc_custody.infrastructure.persistence import CustodyRepository
from src.sc_pool.infrastructure.persistence import RoundRepository


def _result(row=None):
    result = MagicMock()
    result.fetchone.return_value = row
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestCustodyRepository:
    @pytest.mark.asyncio
    async def test_missing_account_reads_as_zero(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        assert await CustodyRepository().get_balance(db, "wallet:alice", "SOL") == 0

    @pytest.mark.asyncio
    async def test_debit_matching_no_row_is_insufficient(self, db):
        balance_row = MagicMock(balance=40)
        db.execute = AsyncMock(side_effect=[_result(None), _result(balance_row)])

        with pytest.raises(InsufficientFundsError) as exc_info:
            await CustodyRepository().debit(
                db, "wallet:alice", "SOL", 100, "TRANSFER_OUT", None, None, None
            )

        assert "40" in exc_info.value.message
        assert db.execute.await_count == 2


class TestRoundRepository:
    @pytest.mark.asyncio
    async def test_duplicate_claim_raises(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(AlreadyClaimedError):
            await RoundRepository().record_claim(db, 1, "alice", "USDC", 10)

    @pytest.mark.asyncio
    async def test_first_claim_inserts(self, db):
        db.execute = AsyncMock(return_value=_result(MagicMock(round_id=1)))
        await RoundRepository().record_claim(db, 1, "alice", "USDC", 10)
        db.execute.assert_awaited_once()
