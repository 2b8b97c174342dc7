import pytest

from src.sc_common.errors import UnauthorizedError
from src.sc_gateway.auth.dependencies import get_actor


class TestGetActor:
    @pytest.mark.asyncio
    async def test_strips_identity(self) -> None:
        assert await get_actor(" alice ") == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "", "   "])
    async def test_missing_or_blank(self, value) -> None:
        with pytest.raises(UnauthorizedError):
            await get_actor(value)
