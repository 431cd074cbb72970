"""Domain models for iv_journal — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.iv_common.enums import INCOMING_ENTRY_TYPES, EntryStatus


@dataclass
class JournalEntry:
    id: int                          # BIGSERIAL
    account_id: str
    entry_type: str                  # EntryType value
    amount: int                      # cents, always positive; direction comes from entry_type
    asset: str
    status: str                      # EntryStatus value
    description: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == EntryStatus.PENDING

    @property
    def is_incoming(self) -> bool:
        return self.entry_type in INCOMING_ENTRY_TYPES


@dataclass
class NewJournalEntry:
    """Values for ``append``; status defaults are chosen by the caller."""

    account_id: str
    entry_type: str
    amount: int
    asset: str
    status: str
    description: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class LedgerEvent:
    id: int
    event_type: str                  # LedgerEventType value
    account_id: str
    payload: dict[str, Any]
    created_at: datetime | None = None
    published_at: datetime | None = None
