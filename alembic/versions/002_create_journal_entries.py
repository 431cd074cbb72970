"""002: create journal_entries table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE journal_entries (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      VARCHAR(64)     NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
            entry_type      VARCHAR(20)     NOT NULL,
            amount          BIGINT          NOT NULL,
            asset           VARCHAR(16)     NOT NULL,
            status          VARCHAR(16)     NOT NULL,
            description     VARCHAR(500),
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            details         JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at     TIMESTAMPTZ,
            CONSTRAINT ck_journal_entry_type CHECK (
                entry_type IN (
                    'deposit', 'withdrawal', 'investment', 'commission',
                    'profit', 'transfer_in', 'sell'
                )
            ),
            CONSTRAINT ck_journal_status CHECK (status IN ('pending', 'completed', 'rejected')),
            CONSTRAINT ck_journal_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_journal_resolved_at CHECK ((status = 'pending') = (resolved_at IS NULL))
        );
    """)
    op.execute("CREATE INDEX idx_journal_account_id ON journal_entries (account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_journal_pending
        ON journal_entries (entry_type, id)
        WHERE status = 'pending';
    """)
    # One commission per source entry: a retried cascade can never pay twice
    op.execute("""
        CREATE UNIQUE INDEX uq_journal_commission_source
        ON journal_entries (reference_type, reference_id)
        WHERE entry_type = 'commission';
    """)
    op.execute("COMMENT ON TABLE journal_entries IS 'Money-movement journal; only pending rows ever change, amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS journal_entries CASCADE;")
