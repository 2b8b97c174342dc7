"""Pure round accounting: bet booking and entitlement math."""

import pytest

from src.sc_common.enums import RoundOutcome
from src.sc_common.errors import InvalidInputError, RoundResolvedError
from src.sc_pool.domain.models import Bet, PoolConfig
from src.sc_pool.domain.settlement import (
    apply_bet,
    bet_entitlement,
    claim_window_open,
    new_round,
    outcome_for,
    resolve_round,
    usd_value_of,
)

CONFIG = PoolConfig(
    currencies=("USDC", "URIM"),
    discount_currencies=frozenset({"URIM"}),
    entry_fee_bps=0,
    discount_bps=20,
    min_bet_usd=1,
    default_duration_seconds=300,
    claim_window_seconds=100,
)


def _round():
    return new_round(1, 10_000, 0, 1_000, CONFIG)


class TestRoundSetup:
    def test_default_duration(self) -> None:
        rnd = _round()
        assert (rnd.lock_time, rnd.end_time) == (1_000, 1_300)
        assert rnd.outcome == RoundOutcome.PENDING

    def test_negative_duration(self) -> None:
        with pytest.raises(InvalidInputError):
            new_round(1, 10_000, -1, 1_000, CONFIG)

    def test_outcome_for(self) -> None:
        assert outcome_for(100, 101) == RoundOutcome.UP
        assert outcome_for(100, 99) == RoundOutcome.DOWN
        assert outcome_for(100, 100) == RoundOutcome.DRAW


class TestUsdValue:
    def test_base_currency_is_one_to_one(self) -> None:
        assert usd_value_of(123, "USDC", None, CONFIG) == 123

    def test_other_currency_needs_rate(self) -> None:
        assert usd_value_of(100, "URIM", 150_000_000, CONFIG) == 150
        with pytest.raises(InvalidInputError):
            usd_value_of(100, "URIM", None, CONFIG)


class TestEntitlement:
    def test_pending_round_owes_nothing(self) -> None:
        rnd = _round()
        bet = apply_bet(rnd, None, "a", True, 100, "USDC", None, CONFIG, 1_000)
        assert bet_entitlement(rnd, bet, "USDC", 2) == 0

    def test_loser_owes_nothing(self) -> None:
        rnd = _round()
        bet = apply_bet(rnd, None, "a", True, 100, "USDC", None, CONFIG, 1_000)
        apply_bet(rnd, None, "b", False, 100, "USDC", None, CONFIG, 1_000)
        resolve_round(rnd, 9_000, "k", 1_300)
        assert bet_entitlement(rnd, bet, "USDC", 2) == 0

    def test_draw_refunds_own_currency_only(self) -> None:
        rnd = _round()
        bet = apply_bet(rnd, None, "a", True, 100, "URIM", 200_000_000, CONFIG, 1_000)
        resolve_round(rnd, 10_000, "k", 1_300)
        assert bet_entitlement(rnd, bet, "URIM", 2) == 100
        assert bet_entitlement(rnd, bet, "USDC", 2) == 0

    def test_single_currency_configuration(self) -> None:
        rnd = _round()
        bet = apply_bet(rnd, None, "a", False, 100, "USDC", None, CONFIG, 1_000)
        apply_bet(rnd, None, "b", True, 300, "USDC", None, CONFIG, 1_000)
        resolve_round(rnd, 9_000, "k", 1_300)
        assert bet_entitlement(rnd, bet, "USDC", 1) == 400
        assert bet_entitlement(rnd, bet, "URIM", 1) == 0

    def test_resolve_twice(self) -> None:
        rnd = _round()
        resolve_round(rnd, 9_000, "k", 1_300)
        with pytest.raises(RoundResolvedError):
            resolve_round(rnd, 9_500, "k", 1_301)


class TestClaimWindow:
    def test_window(self) -> None:
        rnd = _round()
        assert claim_window_open(rnd, CONFIG, 1_399) is True
        assert claim_window_open(rnd, CONFIG, 1_400) is False

    def test_bet_claim_flags(self) -> None:
        bet = Bet(round_id=1, owner="a", side_up=True, currency="USDC")
        assert bet.is_claimed("USDC") is False
        bet.claims["USDC"] = 0
        assert bet.is_claimed("USDC") is True
