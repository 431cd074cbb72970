"""Domain models for iv_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.iv_common.enums import AccountStatus


@dataclass
class Account:
    id: str
    main_balance: int          # cents
    commission_balance: int    # cents
    status: str                # AccountStatus value
    is_voucher: bool
    is_admin: bool
    pin_hash: str
    referral_code: str
    referred_by: str | None = None
    status_reason: str | None = None
    full_name: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> int:
        return self.main_balance + self.commission_balance

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


@dataclass
class DebitResult:
    """Outcome of an atomic debit: new account state plus the bucket split.

    from_main + from_commission == debited amount. The split is stored with the
    journal entry so a reversal restores exactly the buckets it drained.
    """

    account: Account
    from_main: int
    from_commission: int


@dataclass
class Referral:
    account_id: str
    full_name: str | None
    status: str
    created_at: datetime | None
    commission_earned: int   # cents credited to the referrer from this account
