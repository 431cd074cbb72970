"""Domain models for iv_investment — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.iv_common.enums import PositionStatus


@dataclass
class Position:
    id: int                          # BIGSERIAL
    account_id: str
    offer_name: str
    initial_amount: int              # cents
    current_balance: int             # cents; only field expected to change after creation
    total_return_bps: int
    daily_return_bps: int
    risk_level: str                  # RiskLevel value
    status: str                      # PositionStatus value
    funding_method: str              # FundingMethod value
    journal_entry_id: int | None = None
    created_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == PositionStatus.ACTIVE


@dataclass
class NewPosition:
    account_id: str
    offer_name: str
    initial_amount: int
    risk_level: str
    funding_method: str
    journal_entry_id: int
