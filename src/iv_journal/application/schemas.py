"""Pydantic schemas for iv_journal API."""

from typing import Any

from pydantic import BaseModel

from src.iv_common.cents import cents_to_display
from src.iv_journal.domain.models import JournalEntry


class JournalEntryItem(BaseModel):
    id: int
    entry_type: str
    direction: str          # "in" | "out"
    amount_cents: int
    amount_display: str
    asset: str
    status: str
    description: str | None
    reference_type: str | None
    reference_id: str | None
    details: dict[str, Any]
    created_at: str  # ISO8601 string
    resolved_at: str | None

    @classmethod
    def from_entry(cls, e: JournalEntry) -> "JournalEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            direction="in" if e.is_incoming else "out",
            amount_cents=e.amount,
            amount_display=cents_to_display(e.amount, e.asset),
            asset=e.asset,
            status=e.status,
            description=e.description,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            details=e.details,
            created_at=e.created_at.isoformat() if e.created_at else "",
            resolved_at=e.resolved_at.isoformat() if e.resolved_at else None,
        )


class JournalPage(BaseModel):
    items: list[JournalEntryItem]
    next_cursor: str | None
    has_more: bool
