"""007: index accounts for the newest-first admin listing

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE INDEX idx_accounts_created_at ON accounts (created_at DESC, id DESC);")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_accounts_created_at;")
