"""005: create positions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id              VARCHAR(256)    PRIMARY KEY,
            owner           VARCHAR(128)    NOT NULL,
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets(id),
            nonce           BIGINT          NOT NULL,
            direction       VARCHAR(5)      NOT NULL,
            status          VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            deposit         BIGINT          NOT NULL,
            fee_paid        BIGINT          NOT NULL,
            collateral      BIGINT          NOT NULL,
            entry_price     BIGINT          NOT NULL,
            opened_at       BIGINT          NOT NULL,
            exit_price      BIGINT,
            realized_pnl    BIGINT,
            payout          BIGINT,
            closed_by       VARCHAR(128),
            closed_at       BIGINT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_owner_market_nonce UNIQUE (owner, market_id, nonce),
            CONSTRAINT ck_positions_direction CHECK (direction IN ('LONG', 'SHORT')),
            CONSTRAINT ck_positions_status CHECK (status IN ('OPEN', 'CLOSED', 'LIQUIDATED')),
            CONSTRAINT ck_positions_collateral CHECK (
                deposit > 0 AND fee_paid >= 0 AND collateral = deposit - fee_paid
            ),
            CONSTRAINT ck_positions_entry_price_gt_0 CHECK (entry_price > 0)
        );
    """)
    op.execute("CREATE INDEX idx_positions_market_status ON positions (market_id, status);")
    op.execute("CREATE INDEX idx_positions_owner ON positions (owner, opened_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
