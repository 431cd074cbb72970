"""001: create accounts table

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE accounts (
            id                  VARCHAR(64)  PRIMARY KEY,
            main_balance        BIGINT       NOT NULL DEFAULT 0,
            commission_balance  BIGINT       NOT NULL DEFAULT 0,
            status              VARCHAR(16)  NOT NULL DEFAULT 'active',
            status_reason       VARCHAR(500),
            is_voucher          BOOLEAN      NOT NULL DEFAULT FALSE,
            is_admin            BOOLEAN      NOT NULL DEFAULT FALSE,
            pin_hash            VARCHAR(255) NOT NULL,
            referral_code       VARCHAR(32)  NOT NULL,
            referred_by         VARCHAR(64)  REFERENCES accounts (id) ON DELETE SET NULL,
            full_name           VARCHAR(255),
            version             BIGINT       NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_referral_code        UNIQUE (referral_code),
            CONSTRAINT ck_accounts_main_gte_0           CHECK (main_balance >= 0),
            CONSTRAINT ck_accounts_commission_gte_0     CHECK (commission_balance >= 0),
            CONSTRAINT ck_accounts_status CHECK (status IN ('active', 'suspended', 'banned')),
            CONSTRAINT ck_accounts_not_self_referred    CHECK (referred_by IS NULL OR referred_by <> id)
        );
    """)
    op.execute("CREATE INDEX idx_accounts_referred_by ON accounts (referred_by) WHERE referred_by IS NOT NULL;")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Investor accounts: main + commission buckets, all amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
