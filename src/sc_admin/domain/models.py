"""Protocol-wide configuration: a single row, seeded by migration."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ProtocolConfig:
    admin: str
    treasury: str
    paused: bool
    current_round_id: int        # id handed to the next started round
    updated_at: datetime | None = None
