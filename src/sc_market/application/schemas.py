"""Pydantic schemas for sc_market API.

Cursor format for markets (VARCHAR PK, not sequential):
  {"ts": "<created_at ISO>", "id": "<market_id>"}
  Encoded as Base64 JSON string.
"""

import base64
import json

from pydantic import BaseModel, Field

from src.sc_market.domain.models import Market

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_market: Market) -> str:
    """Encode composite cursor from last market in page."""
    payload = {
        "ts": last_market.created_at.isoformat() if last_market.created_at else None,
        "id": last_market.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, market_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except (ValueError, KeyError, TypeError):
        return None, None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class InitializeMarketRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=16, description="Commodity name, <= 16 bytes")
    initial_price: int = Field(..., description="Initial mark price, fixed-point, > 0")


class UpdatePriceRequest(BaseModel):
    price: int = Field(..., description="New mark price, fixed-point, > 0")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketDetail(BaseModel):
    id: str
    name: str
    mark_price: int
    authority: str
    last_price_update: int
    open_interest_long: int
    open_interest_short: int
    total_fees_collected: int
    created_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        return cls(
            id=m.id,
            name=m.name,
            mark_price=m.mark_price,
            authority=m.authority,
            last_price_update=m.last_price_update,
            open_interest_long=m.open_interest_long,
            open_interest_short=m.open_interest_short,
            total_fees_collected=m.total_fees_collected,
            created_at=m.created_at.isoformat() if m.created_at else None,
        )


class PriceUpdateResponse(BaseModel):
    market_id: str
    old_price: int
    new_price: int
    updated_at: int


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool
