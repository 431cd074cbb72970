"""Pydantic schemas for iv_account API."""

from pydantic import BaseModel, Field

from src.iv_account.domain.models import Account, Referral
from src.iv_common.cents import MAX_AMOUNT_CENTS, cents_to_display
from src.iv_common.enums import DepositMethod

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OnboardRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    pin: str = Field(..., description="Numeric payout PIN")
    referral_code: str | None = Field(None, max_length=32, description="Sponsor's code used at signup")


class DepositRequest(BaseModel):
    amount_cents: int = Field(
        ..., gt=0, le=MAX_AMOUNT_CENTS, description="Amount to deposit in cents"
    )
    method: DepositMethod = DepositMethod.PIX


class ChangePinRequest(BaseModel):
    current_pin: str
    new_pin: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: str
    main_balance_cents: int
    main_balance_display: str
    commission_balance_cents: int
    commission_balance_display: str
    total_balance_cents: int
    total_balance_display: str

    @classmethod
    def from_account(cls, account: Account) -> "BalanceResponse":
        return cls(
            account_id=account.id,
            main_balance_cents=account.main_balance,
            main_balance_display=cents_to_display(account.main_balance),
            commission_balance_cents=account.commission_balance,
            commission_balance_display=cents_to_display(account.commission_balance),
            total_balance_cents=account.total_balance,
            total_balance_display=cents_to_display(account.total_balance),
        )


class AccountResponse(BaseModel):
    """Account profile as shown to its owner or an administrator. Never carries the PIN hash."""

    account_id: str
    full_name: str | None
    status: str
    status_reason: str | None
    is_voucher: bool
    is_admin: bool
    referral_code: str
    referred_by: str | None
    balance: BalanceResponse

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.id,
            full_name=account.full_name,
            status=account.status,
            status_reason=account.status_reason,
            is_voucher=account.is_voucher,
            is_admin=account.is_admin,
            referral_code=account.referral_code,
            referred_by=account.referred_by,
            balance=BalanceResponse.from_account(account),
        )


class DepositResponse(BaseModel):
    main_balance_cents: int
    total_balance_cents: int
    total_balance_display: str
    deposited_cents: int
    deposited_display: str
    journal_entry_id: int

    @classmethod
    def from_result(cls, account: Account, amount: int, entry_id: int) -> "DepositResponse":
        return cls(
            main_balance_cents=account.main_balance,
            total_balance_cents=account.total_balance,
            total_balance_display=cents_to_display(account.total_balance),
            deposited_cents=amount,
            deposited_display=cents_to_display(amount),
            journal_entry_id=entry_id,
        )


class ReferralItem(BaseModel):
    account_id: str
    full_name: str | None
    status: str
    joined_at: str | None
    commission_earned_cents: int
    commission_earned_display: str

    @classmethod
    def from_referral(cls, r: Referral) -> "ReferralItem":
        return cls(
            account_id=r.account_id,
            full_name=r.full_name,
            status=r.status,
            joined_at=r.created_at.isoformat() if r.created_at else None,
            commission_earned_cents=r.commission_earned,
            commission_earned_display=cents_to_display(r.commission_earned),
        )


class ReferralsResponse(BaseModel):
    referral_code: str
    total_referrals: int
    total_commission_cents: int
    items: list[ReferralItem]
