"""Pydantic schemas for iv_withdrawal API."""

from typing import Any

from pydantic import BaseModel, Field

from src.iv_common.cents import MAX_AMOUNT_CENTS, bps_to_percent, cents_to_display
from src.iv_common.enums import DestinationKeyType
from src.iv_journal.domain.models import JournalEntry
from src.iv_withdrawal.domain.flow import WITHDRAWAL_FEE_BPS, step_for_status
from src.iv_withdrawal.domain.models import PayoutDestination, WithdrawalQuote

# ---------------------------------------------------------------------------
# Payout destinations
# ---------------------------------------------------------------------------


class CreateDestinationRequest(BaseModel):
    key_type: DestinationKeyType
    key: str = Field(..., min_length=1, max_length=255)
    label: str | None = Field(None, max_length=100)
    network_or_bank: str | None = Field(
        None, max_length=100, description="Bank name for PIX keys, BEP20/TRC20 for USDT"
    )


class DestinationItem(BaseModel):
    id: int
    key_type: str
    key: str
    label: str
    network_or_bank: str | None
    created_at: str | None

    @classmethod
    def from_destination(cls, d: PayoutDestination) -> "DestinationItem":
        return cls(
            id=d.id,
            key_type=d.key_type,
            key=d.key,
            label=d.label,
            network_or_bank=d.network_or_bank,
            created_at=d.created_at.isoformat() if d.created_at else None,
        )


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


class QuoteRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, le=MAX_AMOUNT_CENTS)


class QuoteResponse(BaseModel):
    amount_cents: int
    fee_cents: int
    net_cents: int
    fee_rate: str
    amount_display: str
    fee_display: str
    net_display: str
    available_cents: int
    next_step: str

    @classmethod
    def from_quote(cls, q: WithdrawalQuote, next_step: str) -> "QuoteResponse":
        return cls(
            amount_cents=q.amount,
            fee_cents=q.fee,
            net_cents=q.net,
            fee_rate=bps_to_percent(WITHDRAWAL_FEE_BPS),
            amount_display=cents_to_display(q.amount),
            fee_display=cents_to_display(q.fee),
            net_display=cents_to_display(q.net),
            available_cents=q.available,
            next_step=next_step,
        )


class WithdrawalRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, le=MAX_AMOUNT_CENTS)
    destination_id: int
    pin: str = Field(..., min_length=1, max_length=32)


class ResolveWithdrawalRequest(BaseModel):
    approved: bool


class WithdrawalItem(BaseModel):
    entry_id: int
    account_id: str
    amount_cents: int
    fee_cents: int
    net_cents: int
    net_display: str
    status: str
    step: str
    destination: dict[str, Any]
    from_main_cents: int
    from_commission_cents: int
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_entry(cls, e: JournalEntry) -> "WithdrawalItem":
        d = e.details
        net = int(d.get("net", e.amount))
        return cls(
            entry_id=e.id,
            account_id=e.account_id,
            amount_cents=e.amount,
            fee_cents=int(d.get("fee", 0)),
            net_cents=net,
            net_display=cents_to_display(net, e.asset),
            status=e.status,
            step=step_for_status(e.status).value,
            destination=dict(d.get("destination", {})),
            from_main_cents=int(d.get("from_main", 0)),
            from_commission_cents=int(d.get("from_commission", 0)),
            created_at=e.created_at.isoformat() if e.created_at else None,
            resolved_at=e.resolved_at.isoformat() if e.resolved_at else None,
        )
