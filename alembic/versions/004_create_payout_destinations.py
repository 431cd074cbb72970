"""004: create payout_destinations table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payout_destinations (
            id                  BIGSERIAL    PRIMARY KEY,
            account_id          VARCHAR(64)  NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
            key_type            VARCHAR(10)  NOT NULL,
            key                 VARCHAR(255) NOT NULL,
            label               VARCHAR(100) NOT NULL,
            network_or_bank     VARCHAR(100),
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_destinations_key_type CHECK (
                key_type IN ('cpf', 'email', 'phone', 'random', 'usdt')
            )
        );
    """)
    op.execute("CREATE INDEX idx_destinations_account ON payout_destinations (account_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payout_destinations CASCADE;")
