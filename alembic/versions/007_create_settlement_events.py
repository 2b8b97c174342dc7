"""007: create settlement_events (append-only audit trail)

Revision ID: 007
Revises: 006
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE settlement_events (
            id              BIGSERIAL       PRIMARY KEY,
            event_type      VARCHAR(32)     NOT NULL,
            entity_type     VARCHAR(20)     NOT NULL,
            entity_id       VARCHAR(256)    NOT NULL,
            actor           VARCHAR(128),
            before_state    JSONB,
            after_state     JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute(
        "CREATE INDEX idx_settlement_events_entity "
        "ON settlement_events (entity_type, entity_id, id);"
    )
    op.execute(
        "CREATE INDEX idx_settlement_events_type ON settlement_events (event_type, created_at);"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlement_events CASCADE;")
