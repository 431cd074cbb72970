"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means a business constraint was violated (insufficient
funds, account not active) or the account does not exist; the repository
re-reads the row only to pick the right error.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back via ``run_in_transaction``.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account, DebitResult, Referral
from src.iv_account.domain.policies import ensure_active
from src.iv_common.enums import Bucket, EntryStatus, EntryType
from src.iv_common.errors import (
    AccountNotFoundError,
    InsufficientFundsError,
    InternalError,
    InvalidBalanceEditError,
)

_ACCOUNT_COLUMNS = """
    id, main_balance, commission_balance, status, status_reason,
    is_voucher, is_admin, pin_hash, referral_code, referred_by,
    full_name, version, created_at, updated_at
"""

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
    FOR UPDATE
""")

_GET_BY_REFERRAL_CODE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE referral_code = :referral_code
""")

_LIST_REFERRALS_SQL = text("""
    SELECT a.id, a.full_name, a.status, a.created_at,
           COALESCE((
               SELECT SUM(c.amount)
               FROM journal_entries c
               JOIN journal_entries src
                 ON src.id = CAST(c.reference_id AS BIGINT)
               WHERE c.account_id = :referrer_id
                 AND c.entry_type = :commission_type
                 AND c.status = :completed
                 AND c.reference_type = 'JOURNAL'
                 AND src.account_id = a.id
           ), 0) AS commission_earned
    FROM accounts a
    WHERE a.referred_by = :referrer_id
    ORDER BY a.created_at DESC
""")

# Newest first, keyset on (created_at, id)
_LIST_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE (CAST(:pattern AS VARCHAR) IS NULL
           OR full_name ILIKE :pattern
           OR id = :search)
      AND (CAST(:after_ts AS TIMESTAMPTZ) IS NULL
           OR (created_at, id) < (CAST(:after_ts AS TIMESTAMPTZ), CAST(:after_id AS VARCHAR)))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: mutations
# ---------------------------------------------------------------------------

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (id, pin_hash, referral_code, referred_by, full_name)
    VALUES (:account_id, :pin_hash, :referral_code, :referred_by, :full_name)
    ON CONFLICT DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_MAIN_SQL = text(f"""
    UPDATE accounts
    SET main_balance = main_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_COMMISSION_SQL = text(f"""
    UPDATE accounts
    SET commission_balance = commission_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Deduction order: drain main first, remainder from commission. The locked CTE
# row is the authoritative balance; the split is returned for later reversal.
_DEBIT_SQL = text("""
    WITH cur AS (
        SELECT id, main_balance, commission_balance
        FROM accounts
        WHERE id = :account_id
        FOR UPDATE
    )
    UPDATE accounts AS a
    SET main_balance       = GREATEST(cur.main_balance - CAST(:amount AS BIGINT), 0),
        commission_balance = cur.commission_balance
                             - GREATEST(CAST(:amount AS BIGINT) - cur.main_balance, 0),
        version = a.version + 1,
        updated_at = NOW()
    FROM cur
    WHERE a.id = cur.id
      AND a.status = 'active'
      AND cur.main_balance + cur.commission_balance >= CAST(:amount AS BIGINT)
    RETURNING a.id, a.main_balance, a.commission_balance, a.status, a.status_reason,
              a.is_voucher, a.is_admin, a.pin_hash, a.referral_code, a.referred_by,
              a.full_name, a.version, a.created_at, a.updated_at,
              LEAST(cur.main_balance, CAST(:amount AS BIGINT)) AS from_main,
              GREATEST(CAST(:amount AS BIGINT) - cur.main_balance, 0) AS from_commission
""")

_RESTORE_SQL = text(f"""
    UPDATE accounts
    SET main_balance = main_balance + :from_main,
        commission_balance = commission_balance + :from_commission,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_STATUS_SQL = text(f"""
    UPDATE accounts
    SET status = :status,
        status_reason = :reason,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPDATE_PROFILE_SQL = text(f"""
    UPDATE accounts
    SET is_voucher = COALESCE(:is_voucher, is_voucher),
        is_admin   = COALESCE(:is_admin, is_admin),
        full_name  = COALESCE(:full_name, full_name),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_BALANCES_SQL = text(f"""
    UPDATE accounts
    SET main_balance = :main_balance,
        commission_balance = :commission_balance,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPDATE_PIN_SQL = text(f"""
    UPDATE accounts
    SET pin_hash = :pin_hash,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DELETE_ACCOUNT_SQL = text("""
    DELETE FROM accounts
    WHERE id = :account_id
    RETURNING id
""")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.id,  # type: ignore[attr-defined]
        main_balance=row.main_balance,  # type: ignore[attr-defined]
        commission_balance=row.commission_balance,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        status_reason=row.status_reason,  # type: ignore[attr-defined]
        is_voucher=row.is_voucher,  # type: ignore[attr-defined]
        is_admin=row.is_admin,  # type: ignore[attr-defined]
        pin_hash=row.pin_hash,  # type: ignore[attr-defined]
        referral_code=row.referral_code,  # type: ignore[attr-defined]
        referred_by=row.referred_by,  # type: ignore[attr-defined]
        full_name=row.full_name,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — all balance operations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_for_update(
        self, db: AsyncSession, account_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_FOR_UPDATE_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_by_referral_code(
        self, db: AsyncSession, referral_code: str
    ) -> Account | None:
        result = await db.execute(
            _GET_BY_REFERRAL_CODE_SQL, {"referral_code": referral_code}
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create_account(
        self,
        db: AsyncSession,
        account_id: str,
        pin_hash: str,
        referral_code: str,
        referred_by: str | None,
        full_name: str | None,
    ) -> Account | None:
        """Insert a new account.

        Returns None when the row clashes on the primary key or the referral code;
        the caller re-reads to tell the two apart.
        """
        result = await db.execute(
            _INSERT_ACCOUNT_SQL,
            {
                "account_id": account_id,
                "pin_hash": pin_hash,
                "referral_code": referral_code,
                "referred_by": referred_by,
                "full_name": full_name,
            },
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def credit(
        self, db: AsyncSession, account_id: str, amount: int, bucket: Bucket
    ) -> Account:
        sql = _CREDIT_MAIN_SQL if bucket == Bucket.MAIN else _CREDIT_COMMISSION_SQL
        result = await db.execute(sql, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def debit(self, db: AsyncSession, account_id: str, amount: int) -> DebitResult:
        result = await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account(db, account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            ensure_active(current)
            raise InsufficientFundsError(amount, current.total_balance)
        return DebitResult(
            account=_row_to_account(row),
            from_main=row.from_main,
            from_commission=row.from_commission,
        )

    async def restore(
        self, db: AsyncSession, account_id: str, from_main: int, from_commission: int
    ) -> Account:
        result = await db.execute(
            _RESTORE_SQL,
            {
                "account_id": account_id,
                "from_main": from_main,
                "from_commission": from_commission,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def set_status(
        self, db: AsyncSession, account_id: str, status: str, reason: str | None
    ) -> Account:
        result = await db.execute(
            _SET_STATUS_SQL, {"account_id": account_id, "status": status, "reason": reason}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def update_profile(
        self,
        db: AsyncSession,
        account_id: str,
        is_voucher: bool | None,
        is_admin: bool | None,
        full_name: str | None,
    ) -> Account:
        result = await db.execute(
            _UPDATE_PROFILE_SQL,
            {
                "account_id": account_id,
                "is_voucher": is_voucher,
                "is_admin": is_admin,
                "full_name": full_name,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def set_balances(
        self, db: AsyncSession, account_id: str, main_balance: int, commission_balance: int
    ) -> Account:
        if main_balance < 0 or commission_balance < 0:
            raise InvalidBalanceEditError("balances cannot be negative")
        result = await db.execute(
            _SET_BALANCES_SQL,
            {
                "account_id": account_id,
                "main_balance": main_balance,
                "commission_balance": commission_balance,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def update_pin(self, db: AsyncSession, account_id: str, pin_hash: str) -> Account:
        result = await db.execute(
            _UPDATE_PIN_SQL, {"account_id": account_id, "pin_hash": pin_hash}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def list_referrals(self, db: AsyncSession, referrer_id: str) -> list[Referral]:
        result = await db.execute(
            _LIST_REFERRALS_SQL,
            {
                "referrer_id": referrer_id,
                "commission_type": EntryType.COMMISSION.value,
                "completed": EntryStatus.COMPLETED.value,
            },
        )
        return [
            Referral(
                account_id=row.id,
                full_name=row.full_name,
                status=row.status,
                created_at=row.created_at,
                commission_earned=int(row.commission_earned),
            )
            for row in result.fetchall()
        ]

    async def list_accounts(
        self,
        db: AsyncSession,
        search: str | None,
        after: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Account]:
        """Admin listing: newest first, filtered by name substring or exact id."""
        result = await db.execute(
            _LIST_ACCOUNTS_SQL,
            {
                "pattern": f"%{_escape_like(search)}%" if search else None,
                "search": search,
                "after_ts": after[0] if after else None,
                "after_id": after[1] if after else None,
                "limit": limit,
            },
        )
        return [_row_to_account(row) for row in result.fetchall()]

    async def delete_account(self, db: AsyncSession, account_id: str) -> bool:
        result = await db.execute(_DELETE_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Account delete matched no row: {account_id}")
        return True
