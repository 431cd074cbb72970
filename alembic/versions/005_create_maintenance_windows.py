"""005: create maintenance_windows table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE maintenance_windows (
            id                  BIGSERIAL    PRIMARY KEY,
            start_at            TIMESTAMPTZ  NOT NULL,
            duration_minutes    INTEGER      NOT NULL,
            active              BOOLEAN      NOT NULL DEFAULT TRUE,
            created_by          VARCHAR(64),
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_maintenance_duration_gt_0 CHECK (duration_minutes > 0)
        );
    """)
    op.execute("CREATE INDEX idx_maintenance_active_start ON maintenance_windows (start_at) WHERE active;")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS maintenance_windows CASCADE;")
