"""Repository Protocol for the transaction journal and its event outbox."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_journal.domain.models import JournalEntry, LedgerEvent, NewJournalEntry


class JournalRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, entry: NewJournalEntry) -> JournalEntry: ...

    async def get(self, db: AsyncSession, entry_id: int) -> JournalEntry | None: ...

    async def get_for_update(self, db: AsyncSession, entry_id: int) -> JournalEntry | None: ...

    async def count_qualifying(self, db: AsyncSession, account_id: str) -> int: ...

    async def resolve(
        self, db: AsyncSession, entry_id: int, status: str
    ) -> JournalEntry: ...

    async def find_by_reference(
        self, db: AsyncSession, entry_type: str, reference_type: str, reference_id: str
    ) -> JournalEntry | None: ...

    async def count_pending(self, db: AsyncSession, account_id: str, entry_type: str) -> int: ...

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
        status: str | None,
    ) -> list[JournalEntry]: ...

    async def list_pending(
        self, db: AsyncSession, entry_type: str, limit: int
    ) -> list[JournalEntry]: ...

    async def write_event(
        self, db: AsyncSession, event_type: str, account_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def list_events(
        self, db: AsyncSession, after_id: int | None, limit: int
    ) -> list[LedgerEvent]: ...

    async def mark_events_published(self, db: AsyncSession, event_ids: list[int]) -> int: ...
