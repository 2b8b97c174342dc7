from src.sc_clearing.domain.payout import (
    clamp_to_balance,
    close_payout,
    cross_currency_winnings,
    directional_pnl,
    liquidator_reward,
    loss_bps,
    price_delta,
    same_currency_payout,
    split_payout,
)
from src.sc_common.enums import Direction


class TestDirectionalPnl:
    def test_long_gains_when_price_rises(self) -> None:
        assert price_delta(Direction.LONG, 100, 110) == 10
        assert directional_pnl(Direction.LONG, 100, 110, 1_000) == 100

    def test_short_gains_when_price_falls(self) -> None:
        assert directional_pnl(Direction.SHORT, 100, 90, 1_000) == 100

    def test_loss_is_negative(self) -> None:
        assert directional_pnl(Direction.SHORT, 100, 110, 1_000) == -100

    def test_truncates_toward_zero(self) -> None:
        # 1 * 999 / 1000 = 0.999 either way
        assert directional_pnl(Direction.LONG, 1_000, 1_001, 999) == 0
        assert directional_pnl(Direction.LONG, 1_000, 999, 999) == 0

    def test_large_values_do_not_overflow(self) -> None:
        collateral = 10**18
        assert directional_pnl(Direction.LONG, 1, 3, collateral) == 2 * collateral


class TestClosePayout:
    def test_profit_added(self) -> None:
        assert close_payout(1_000, 100) == 1_100

    def test_loss_subtracted(self) -> None:
        assert close_payout(1_000, -300) == 700

    def test_loss_floored_at_zero(self) -> None:
        assert close_payout(1_000, -5_000) == 0


class TestLossBps:
    def test_adverse_move(self) -> None:
        assert loss_bps(Direction.LONG, 100, 20) == 8_000
        assert loss_bps(Direction.SHORT, 100, 150) == 5_000

    def test_favourable_or_flat_is_zero(self) -> None:
        assert loss_bps(Direction.LONG, 100, 100) == 0
        assert loss_bps(Direction.LONG, 100, 120) == 0
        assert loss_bps(Direction.SHORT, 100, 80) == 0

    def test_reward(self) -> None:
        assert liquidator_reward(1_000, 200) == 20
        assert liquidator_reward(49, 200) == 0


class TestParimutuel:
    def test_same_currency(self) -> None:
        # stake 100 on a winning pool of 100 vs losing 300
        assert same_currency_payout(100, 300, 100) == 400

    def test_same_currency_floors(self) -> None:
        # 10 + 10 * 100 / 30 = 10 + 33
        assert same_currency_payout(10, 100, 30) == 43

    def test_empty_winning_pool(self) -> None:
        assert same_currency_payout(0, 500, 0) == 0

    def test_cross_currency(self) -> None:
        assert cross_currency_winnings(100, 100, 200) == 50
        assert cross_currency_winnings(100, 100, 0) == 0

    def test_winner_shares_sum_to_at_most_losing_pool(self) -> None:
        usd = [333, 333, 334]
        shares = [cross_currency_winnings(u, 1_000, sum(usd)) for u in usd]
        assert sum(shares) <= 1_000


class TestClamping:
    def test_clamp(self) -> None:
        assert clamp_to_balance(500, 300) == 300
        assert clamp_to_balance(200, 300) == 200
        assert clamp_to_balance(-5, 300) == 0

    def test_split_prefers_primary(self) -> None:
        split = split_payout(1_100, 1_000, 500)
        assert (split.primary, split.secondary, split.total) == (1_000, 100, 1_100)

    def test_split_clamped_by_both(self) -> None:
        split = split_payout(2_000, 1_000, 500)
        assert split.total == 1_500

    def test_split_small_amount_from_primary_only(self) -> None:
        split = split_payout(900, 1_000, 500)
        assert (split.primary, split.secondary) == (900, 0)
