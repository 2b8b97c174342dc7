"""003: create custody_accounts and custody_entries

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE custody_accounts (
            bucket          VARCHAR(128)    NOT NULL,
            asset           VARCHAR(16)     NOT NULL,
            balance         BIGINT          NOT NULL DEFAULT 0,
            version         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (bucket, asset),
            CONSTRAINT ck_custody_accounts_balance_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_custody_accounts_updated_at
            BEFORE UPDATE ON custody_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE custody_entries (
            id              BIGSERIAL       PRIMARY KEY,
            bucket          VARCHAR(128)    NOT NULL,
            asset           VARCHAR(16)     NOT NULL,
            entry_type      VARCHAR(20)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(128),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_custody_entries_amount_nonzero CHECK (amount <> 0),
            CONSTRAINT ck_custody_entries_balance_after_gte_0 CHECK (balance_after >= 0),
            CONSTRAINT ck_custody_entries_type CHECK (
                entry_type IN ('DEPOSIT', 'WITHDRAW', 'TRANSFER_OUT', 'TRANSFER_IN')
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_custody_entries_bucket ON custody_entries (bucket, id DESC);"
    )
    op.execute(
        "CREATE INDEX idx_custody_entries_reference "
        "ON custody_entries (reference_type, reference_id);"
    )
    op.execute("COMMENT ON TABLE custody_entries IS 'Append-only custody journal';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS custody_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS custody_accounts CASCADE;")
