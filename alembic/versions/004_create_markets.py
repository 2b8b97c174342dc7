"""004: create markets table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                      VARCHAR(64)     PRIMARY KEY,
            name                    VARCHAR(16)     NOT NULL UNIQUE,
            mark_price              BIGINT          NOT NULL,
            authority               VARCHAR(128)    NOT NULL,
            last_price_update       BIGINT          NOT NULL,
            open_interest_long      BIGINT          NOT NULL DEFAULT 0,
            open_interest_short     BIGINT          NOT NULL DEFAULT 0,
            total_fees_collected    BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_mark_price_gt_0   CHECK (mark_price > 0),
            CONSTRAINT ck_markets_oi_long_gte_0     CHECK (open_interest_long >= 0),
            CONSTRAINT ck_markets_oi_short_gte_0    CHECK (open_interest_short >= 0),
            CONSTRAINT ck_markets_fees_gte_0        CHECK (total_fees_collected >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_markets_created ON markets (created_at DESC, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
