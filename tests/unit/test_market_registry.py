import pytest

from src.sc_common.enums import Direction
from src.sc_common.errors import (
    InvalidInputError,
    InvalidPriceError,
    NameTooLongError,
    UnauthorizedError,
)
from src.sc_market.domain.registry import (
    add_open_interest,
    apply_price_update,
    market_id_for,
    new_market,
    remove_open_interest,
)


class TestNewMarket:
    def test_builds_market(self) -> None:
        m = new_market("GOLD", 195_000, "oracle-bot", 1_000)
        assert m.id == market_id_for("GOLD") == "market:GOLD"
        assert m.mark_price == 195_000
        assert m.last_price_update == 1_000
        assert (m.open_interest_long, m.open_interest_short, m.total_fees_collected) == (0, 0, 0)

    def test_name_limit_counts_utf8_bytes(self) -> None:
        new_market("A" * 16, 1, "auth", 0)
        with pytest.raises(NameTooLongError):
            new_market("A" * 17, 1, "auth", 0)
        with pytest.raises(NameTooLongError):
            new_market("é" * 9, 1, "auth", 0)   # 18 bytes

    def test_empty_name(self) -> None:
        with pytest.raises(InvalidInputError):
            new_market("", 1, "auth", 0)

    def test_price_must_be_positive(self) -> None:
        with pytest.raises(InvalidPriceError):
            new_market("GOLD", 0, "auth", 0)


class TestPriceUpdate:
    def test_authority_updates_price(self) -> None:
        m = new_market("GOLD", 100, "auth", 0)
        assert apply_price_update(m, 120, "auth", 50) == 100
        assert (m.mark_price, m.last_price_update) == (120, 50)

    def test_other_caller_rejected(self) -> None:
        m = new_market("GOLD", 100, "auth", 0)
        with pytest.raises(UnauthorizedError):
            apply_price_update(m, 120, "mallory", 50)
        assert m.mark_price == 100

    def test_price_checked_before_authority(self) -> None:
        m = new_market("GOLD", 100, "auth", 0)
        with pytest.raises(InvalidPriceError):
            apply_price_update(m, 0, "mallory", 50)


class TestOpenInterest:
    def test_add_and_remove(self) -> None:
        m = new_market("GOLD", 100, "auth", 0)
        add_open_interest(m, Direction.LONG, 500)
        add_open_interest(m, Direction.SHORT, 300)
        remove_open_interest(m, Direction.LONG, 200)
        assert m.open_interest(Direction.LONG) == 300
        assert m.open_interest(Direction.SHORT) == 300

    def test_remove_saturates(self) -> None:
        m = new_market("GOLD", 100, "auth", 0)
        remove_open_interest(m, Direction.SHORT, 10)
        assert m.open_interest_short == 0
