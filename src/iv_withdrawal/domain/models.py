"""Domain models for iv_withdrawal — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PayoutDestination:
    id: int
    account_id: str
    key_type: str                    # DestinationKeyType value
    key: str
    label: str
    network_or_bank: str | None = None
    created_at: datetime | None = None


@dataclass
class NewPayoutDestination:
    account_id: str
    key_type: str
    key: str
    label: str
    network_or_bank: str | None = None


@dataclass(frozen=True)
class WithdrawalQuote:
    amount: int          # gross, debited at request time
    fee: int
    net: int             # paid out to the destination
    available: int       # total balance at quote time
