"""006: create rounds, round_pools, user_bets, bet_claims

Revision ID: 006
Revises: 005
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE rounds (
            id              BIGINT          PRIMARY KEY,
            locked_price    BIGINT          NOT NULL,
            created_at      BIGINT          NOT NULL,
            end_time        BIGINT          NOT NULL,
            up_pool_usd     BIGINT          NOT NULL DEFAULT 0,
            down_pool_usd   BIGINT          NOT NULL DEFAULT 0,
            total_fees_usd  BIGINT          NOT NULL DEFAULT 0,
            outcome         VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            final_price     BIGINT,
            resolved_at     BIGINT,
            resolved_by     VARCHAR(128),
            fees_collected  BOOLEAN         NOT NULL DEFAULT FALSE,
            closed          BOOLEAN         NOT NULL DEFAULT FALSE,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_rounds_outcome CHECK (outcome IN ('PENDING', 'UP', 'DOWN', 'DRAW')),
            CONSTRAINT ck_rounds_window CHECK (end_time > created_at),
            CONSTRAINT ck_rounds_locked_price_gt_0 CHECK (locked_price > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_rounds_updated_at
            BEFORE UPDATE ON rounds
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE round_pools (
            round_id    BIGINT          NOT NULL REFERENCES rounds(id) ON DELETE CASCADE,
            currency    VARCHAR(16)     NOT NULL,
            position    SMALLINT        NOT NULL,
            up_pool     BIGINT          NOT NULL DEFAULT 0,
            down_pool   BIGINT          NOT NULL DEFAULT 0,
            up_fees     BIGINT          NOT NULL DEFAULT 0,
            down_fees   BIGINT          NOT NULL DEFAULT 0,
            paid_out    BIGINT          NOT NULL DEFAULT 0,
            PRIMARY KEY (round_id, currency),
            CONSTRAINT ck_round_pools_non_negative CHECK (
                up_pool >= 0 AND down_pool >= 0
                AND up_fees >= 0 AND down_fees >= 0 AND paid_out >= 0
            )
        );
    """)
    op.execute("""
        CREATE TABLE user_bets (
            round_id        BIGINT          NOT NULL REFERENCES rounds(id) ON DELETE CASCADE,
            owner           VARCHAR(128)    NOT NULL,
            side_up         BOOLEAN         NOT NULL,
            currency        VARCHAR(16)     NOT NULL,
            amount          BIGINT          NOT NULL DEFAULT 0,
            gross_amount    BIGINT          NOT NULL DEFAULT 0,
            fee_paid        BIGINT          NOT NULL DEFAULT 0,
            usd_value       BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (round_id, owner),
            CONSTRAINT ck_user_bets_amounts CHECK (
                amount >= 0 AND fee_paid >= 0 AND gross_amount = amount + fee_paid
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_user_bets_updated_at
            BEFORE UPDATE ON user_bets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE bet_claims (
            round_id    BIGINT          NOT NULL,
            owner       VARCHAR(128)    NOT NULL,
            currency    VARCHAR(16)     NOT NULL,
            amount      BIGINT          NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (round_id, owner, currency),
            FOREIGN KEY (round_id, owner) REFERENCES user_bets(round_id, owner) ON DELETE CASCADE,
            CONSTRAINT ck_bet_claims_amount_gte_0 CHECK (amount >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_claims CASCADE;")
    op.execute("DROP TABLE IF EXISTS user_bets CASCADE;")
    op.execute("DROP TABLE IF EXISTS round_pools CASCADE;")
    op.execute("DROP TABLE IF EXISTS rounds CASCADE;")
