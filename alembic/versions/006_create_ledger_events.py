"""006: create ledger_events outbox table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # No FK on account_id: events outlive deleted accounts
    op.execute("""
        CREATE TABLE ledger_events (
            id              BIGSERIAL    PRIMARY KEY,
            event_type      VARCHAR(40)  NOT NULL,
            account_id      VARCHAR(64)  NOT NULL,
            payload         JSONB        NOT NULL,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            published_at    TIMESTAMPTZ,
            CONSTRAINT ck_ledger_events_type CHECK (
                event_type IN (
                    'COMMISSION_CREDITED', 'WITHDRAWAL_REQUESTED', 'WITHDRAWAL_RESOLVED',
                    'INVESTMENT_OPENED', 'ACCOUNT_STATUS_CHANGED'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_ledger_events_unpublished ON ledger_events (id) WHERE published_at IS NULL;")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_events CASCADE;")
