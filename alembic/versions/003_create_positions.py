"""003: create positions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id                  BIGSERIAL    PRIMARY KEY,
            account_id          VARCHAR(64)  NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
            offer_name          VARCHAR(100) NOT NULL,
            initial_amount      BIGINT       NOT NULL,
            current_balance     BIGINT       NOT NULL,
            total_return_bps    INTEGER      NOT NULL DEFAULT 0,
            daily_return_bps    INTEGER      NOT NULL DEFAULT 0,
            risk_level          VARCHAR(10)  NOT NULL,
            status              VARCHAR(10)  NOT NULL DEFAULT 'active',
            funding_method      VARCHAR(10)  NOT NULL,
            journal_entry_id    BIGINT       REFERENCES journal_entries (id) ON DELETE SET NULL,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            closed_at           TIMESTAMPTZ,
            CONSTRAINT uq_positions_journal_entry   UNIQUE (journal_entry_id),
            CONSTRAINT ck_positions_initial_gt_0    CHECK (initial_amount > 0),
            CONSTRAINT ck_positions_balance_gte_0   CHECK (current_balance >= 0),
            CONSTRAINT ck_positions_risk CHECK (risk_level IN ('low', 'medium', 'high')),
            CONSTRAINT ck_positions_status CHECK (status IN ('active', 'closed')),
            CONSTRAINT ck_positions_funding CHECK (funding_method IN ('balance', 'pix', 'crypto'))
        );
    """)
    op.execute("CREATE INDEX idx_positions_account ON positions (account_id, id DESC);")
    op.execute("COMMENT ON TABLE positions IS 'Investment positions; closed, never deleted; amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
