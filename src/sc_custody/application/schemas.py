"""Pydantic schemas and cursor utilities for sc_custody API."""

import base64
import json

from pydantic import BaseModel, Field

from src.sc_common.units import amount_to_display
from src.sc_custody.domain.models import CustodyAccount, CustodyEntry

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    asset: str = Field(..., min_length=1, max_length=16)
    amount: int = Field(..., gt=0, description="Smallest unit of the asset")


class WithdrawRequest(BaseModel):
    asset: str = Field(..., min_length=1, max_length=16)
    amount: int = Field(..., gt=0, description="Smallest unit of the asset")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AssetBalance(BaseModel):
    asset: str
    balance: int
    balance_display: str

    @classmethod
    def from_account(cls, account: CustodyAccount) -> "AssetBalance":
        return cls(
            asset=account.asset,
            balance=account.balance,
            balance_display=amount_to_display(account.balance),
        )


class BalanceResponse(BaseModel):
    owner: str
    bucket: str
    balances: list[AssetBalance]


class FundingResponse(BaseModel):
    asset: str
    amount: int
    balance: int
    balance_display: str


class CustodyEntryItem(BaseModel):
    id: int
    asset: str
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_entry(cls, e: CustodyEntry) -> "CustodyEntryItem":
        return cls(
            id=e.id,
            asset=e.asset,
            entry_type=e.entry_type,
            amount=e.amount,
            balance_after=e.balance_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            description=e.description,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class EntriesResponse(BaseModel):
    items: list[CustodyEntryItem]
    next_cursor: str | None
    has_more: bool
