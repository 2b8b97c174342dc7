"""Domain models for sc_custody: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

# Bucket naming: every custody balance is keyed by (bucket, asset).


def wallet_bucket(owner: str) -> str:
    return f"wallet:{owner}"


def treasury_bucket(treasury: str) -> str:
    return f"treasury:{treasury}"


def position_vault_bucket(position_id: str) -> str:
    return f"vault:position:{position_id}"


def insurance_bucket(market_id: str) -> str:
    return f"insurance:{market_id}"


def round_vault_bucket(round_id: int) -> str:
    return f"vault:round:{round_id}"


@dataclass
class CustodyAccount:
    bucket: str
    asset: str
    balance: int                 # smallest unit of asset
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CustodyEntry:
    id: int                          # BIGSERIAL
    bucket: str
    asset: str
    entry_type: str                  # CustodyEntryType value
    amount: int                      # positive=credit negative=debit
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
