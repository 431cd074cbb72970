"""Pydantic schemas for the administrator API."""

from typing import Any

from pydantic import BaseModel, Field

from src.iv_account.application.schemas import AccountResponse
from src.iv_common.cents import MAX_AMOUNT_CENTS
from src.iv_common.enums import AccountStatus
from src.iv_journal.domain.models import LedgerEvent


class UpdateAccountRequest(BaseModel):
    """Partial edit. Balances are absolute values in cents; omitted fields stay as they are."""

    is_voucher: bool | None = None
    is_admin: bool | None = None
    full_name: str | None = Field(None, min_length=1, max_length=255)
    main_balance_cents: int | None = Field(None, ge=0, le=MAX_AMOUNT_CENTS)
    commission_balance_cents: int | None = Field(None, ge=0, le=MAX_AMOUNT_CENTS)


class AccountPage(BaseModel):
    items: list[AccountResponse]
    next_cursor: str | None
    has_more: bool


class AdminStatsResponse(BaseModel):
    total_accounts: int
    pending_withdrawals: int
    external_investment_cents: int
    external_investment_display: str


class SetStatusRequest(BaseModel):
    status: AccountStatus
    reason: str | None = Field(None, max_length=500)


class AckEventsRequest(BaseModel):
    event_ids: list[int] = Field(..., min_length=1, max_length=500)


class LedgerEventItem(BaseModel):
    id: int
    event_type: str
    account_id: str
    payload: dict[str, Any]
    created_at: str | None

    @classmethod
    def from_event(cls, e: LedgerEvent) -> "LedgerEventItem":
        return cls(
            id=e.id,
            event_type=e.event_type,
            account_id=e.account_id,
            payload=e.payload,
            created_at=e.created_at.isoformat() if e.created_at else None,
        )
