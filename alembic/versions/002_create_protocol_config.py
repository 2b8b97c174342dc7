"""002: create protocol_config (single row) and seed the admin

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from config.settings import settings

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE protocol_config (
            id                  SMALLINT        PRIMARY KEY DEFAULT 1,
            admin               VARCHAR(128)    NOT NULL,
            treasury            VARCHAR(128)    NOT NULL,
            paused              BOOLEAN         NOT NULL DEFAULT FALSE,
            current_round_id    BIGINT          NOT NULL DEFAULT 1,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_protocol_config_single_row CHECK (id = 1),
            CONSTRAINT ck_protocol_config_round_id_gte_1 CHECK (current_round_id >= 1)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_protocol_config_updated_at
            BEFORE UPDATE ON protocol_config
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        sa.text("""
            INSERT INTO protocol_config (id, admin, treasury, paused, current_round_id)
            VALUES (1, :admin, :treasury, FALSE, 1);
        """).bindparams(admin=settings.ADMIN_ID, treasury=settings.ADMIN_ID)
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS protocol_config CASCADE;")
