"""JournalApplicationService — read side of the transaction journal."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.pagination import cursor_decode, cursor_encode
from src.iv_journal.application.schemas import JournalEntryItem, JournalPage
from src.iv_journal.domain.repository import JournalRepositoryProtocol
from src.iv_journal.infrastructure.persistence import JournalRepository


class JournalApplicationService:
    def __init__(self, repo: JournalRepositoryProtocol | None = None) -> None:
        self._repo: JournalRepositoryProtocol = repo or JournalRepository()

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
        status: str | None,
    ) -> JournalPage:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(
            db, account_id, cursor_id, limit + 1, entry_type, status
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return JournalPage(
            items=[JournalEntryItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
