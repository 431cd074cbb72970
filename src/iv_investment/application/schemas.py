"""Pydantic schemas for iv_investment API."""

from pydantic import BaseModel, Field

from src.iv_common.cents import MAX_AMOUNT_CENTS, bps_to_percent, cents_to_display
from src.iv_common.enums import FundingMethod
from src.iv_investment.domain.catalog import Offer
from src.iv_investment.domain.models import Position


class OpenPositionRequest(BaseModel):
    offer_name: str = Field(..., min_length=1, max_length=100)
    amount_cents: int = Field(..., gt=0, le=MAX_AMOUNT_CENTS)
    funding_method: FundingMethod = FundingMethod.BALANCE


class ConfirmPaymentRequest(BaseModel):
    approved: bool


class OfferItem(BaseModel):
    name: str
    description: str
    min_amount_cents: int
    max_amount_cents: int
    min_amount_display: str
    max_amount_display: str
    risk_level: str
    target_return: str
    term_days: int

    @classmethod
    def from_offer(cls, o: Offer) -> "OfferItem":
        return cls(
            name=o.name,
            description=o.description,
            min_amount_cents=o.min_amount,
            max_amount_cents=o.max_amount,
            min_amount_display=cents_to_display(o.min_amount),
            max_amount_display=cents_to_display(o.max_amount),
            risk_level=o.risk_level.value,
            target_return=f"+{bps_to_percent(o.target_return_bps)}",
            term_days=o.term_days,
        )


class PositionItem(BaseModel):
    id: int
    offer_name: str
    initial_amount_cents: int
    current_balance_cents: int
    current_balance_display: str
    total_return: str
    daily_return: str
    risk_level: str
    status: str
    funding_method: str
    journal_entry_id: int | None
    created_at: str | None
    closed_at: str | None

    @classmethod
    def from_position(cls, p: Position) -> "PositionItem":
        return cls(
            id=p.id,
            offer_name=p.offer_name,
            initial_amount_cents=p.initial_amount,
            current_balance_cents=p.current_balance,
            current_balance_display=cents_to_display(p.current_balance),
            total_return=bps_to_percent(p.total_return_bps),
            daily_return=bps_to_percent(p.daily_return_bps),
            risk_level=p.risk_level,
            status=p.status,
            funding_method=p.funding_method,
            journal_entry_id=p.journal_entry_id,
            created_at=p.created_at.isoformat() if p.created_at else None,
            closed_at=p.closed_at.isoformat() if p.closed_at else None,
        )


class OpenPositionResponse(BaseModel):
    position: PositionItem
    journal_entry_id: int
    entry_status: str
    charged_cents: int      # 0 unless funded from balance


class PositionListResponse(BaseModel):
    items: list[PositionItem]
    total: int
