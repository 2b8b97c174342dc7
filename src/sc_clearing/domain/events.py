"""Settlement events: one per state transition, consumed by monitors and audit."""

from dataclasses import dataclass, field
from typing import Any

from src.sc_common.datetime_utils import unix_now
from src.sc_common.enums import EventType


@dataclass
class SettlementEvent:
    event_type: EventType
    entity_type: str              # market | position | round | bet | protocol | custody
    entity_id: str
    actor: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any] = field(default_factory=dict)
    at: int = field(default_factory=unix_now)

    def to_payload(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor": self.actor,
            "before": self.before,
            "after": self.after,
            "at": self.at,
        }
