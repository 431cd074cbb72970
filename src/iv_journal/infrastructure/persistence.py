"""JournalRepository — append-mostly journal plus the ledger_events outbox.

Entries are inserted once and only ``pending`` rows ever change, through a
single conditional UPDATE (``WHERE status = 'pending'``); 0 rows means the
entry was already resolved by someone else.

Outbox rows are written inside the caller's transaction so an event exists
if and only if the change it describes was committed.
"""

import json
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.enums import QUALIFYING_ENTRY_TYPES, EntryStatus
from src.iv_common.errors import (
    EntryAlreadyResolvedError,
    InternalError,
    JournalEntryNotFoundError,
)
from src.iv_journal.domain.models import JournalEntry, LedgerEvent, NewJournalEntry

_ENTRY_COLUMNS = """
    id, account_id, entry_type, amount, asset, status, description,
    reference_type, reference_id, details, created_at, resolved_at
"""

# ---------------------------------------------------------------------------
# SQL: journal_entries
# ---------------------------------------------------------------------------

_INSERT_ENTRY_SQL = text(f"""
    INSERT INTO journal_entries
        (account_id, entry_type, amount, asset, status, description,
         reference_type, reference_id, details, resolved_at)
    VALUES
        (:account_id, :entry_type, :amount, :asset, :status, :description,
         :reference_type, :reference_id, CAST(:details AS JSONB),
         CASE WHEN :status = 'pending' THEN NULL ELSE NOW() END)
    RETURNING {_ENTRY_COLUMNS}
""")

_GET_ENTRY_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM journal_entries
    WHERE id = :entry_id
""")

_GET_ENTRY_FOR_UPDATE_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM journal_entries
    WHERE id = :entry_id
    FOR UPDATE
""")

_COUNT_QUALIFYING_SQL = text("""
    SELECT COUNT(*) AS cnt
    FROM journal_entries
    WHERE account_id = :account_id
      AND status = 'completed'
      AND entry_type IN :types
""").bindparams(bindparam("types", expanding=True))

_COUNT_PENDING_SQL = text("""
    SELECT COUNT(*) AS cnt
    FROM journal_entries
    WHERE account_id = :account_id
      AND status = 'pending'
      AND entry_type = :entry_type
""")

_RESOLVE_SQL = text(f"""
    UPDATE journal_entries
    SET status = :status,
        resolved_at = NOW()
    WHERE id = :entry_id AND status = 'pending'
    RETURNING {_ENTRY_COLUMNS}
""")

_FIND_BY_REFERENCE_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM journal_entries
    WHERE entry_type = :entry_type
      AND reference_type = :reference_type
      AND reference_id = :reference_id
    LIMIT 1
""")

_LIST_ENTRIES_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM journal_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_PENDING_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM journal_entries
    WHERE status = 'pending' AND entry_type = :entry_type
    ORDER BY id ASC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: ledger_events (outbox)
# ---------------------------------------------------------------------------

_INSERT_EVENT_SQL = text("""
    INSERT INTO ledger_events (event_type, account_id, payload)
    VALUES (:event_type, :account_id, CAST(:payload AS JSONB))
""")

_LIST_EVENTS_SQL = text("""
    SELECT id, event_type, account_id, payload, created_at, published_at
    FROM ledger_events
    WHERE published_at IS NULL
      AND (CAST(:after_id AS BIGINT) IS NULL OR id > :after_id)
    ORDER BY id ASC
    LIMIT :limit
""")

_MARK_PUBLISHED_SQL = text("""
    UPDATE ledger_events
    SET published_at = NOW()
    WHERE id IN :event_ids AND published_at IS NULL
""").bindparams(bindparam("event_ids", expanding=True))


def _load_json(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return dict(json.loads(value))
    return dict(value)


def _row_to_entry(row: object) -> JournalEntry:
    return JournalEntry(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        details=_load_json(row.details),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
    )


def _row_to_event(row: object) -> LedgerEvent:
    return LedgerEvent(
        id=row.id,  # type: ignore[attr-defined]
        event_type=row.event_type,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        payload=_load_json(row.payload),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        published_at=row.published_at,  # type: ignore[attr-defined]
    )


class JournalRepository:
    async def append(self, db: AsyncSession, entry: NewJournalEntry) -> JournalEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "account_id": entry.account_id,
                "entry_type": entry.entry_type,
                "amount": entry.amount,
                "asset": entry.asset,
                "status": entry.status,
                "description": entry.description,
                "reference_type": entry.reference_type,
                "reference_id": entry.reference_id,
                "details": json.dumps(entry.details),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Journal insert returned no rows — this should never happen")
        return _row_to_entry(row)

    async def get(self, db: AsyncSession, entry_id: int) -> JournalEntry | None:
        result = await db.execute(_GET_ENTRY_SQL, {"entry_id": entry_id})
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def get_for_update(self, db: AsyncSession, entry_id: int) -> JournalEntry | None:
        result = await db.execute(_GET_ENTRY_FOR_UPDATE_SQL, {"entry_id": entry_id})
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def count_qualifying(self, db: AsyncSession, account_id: str) -> int:
        result = await db.execute(
            _COUNT_QUALIFYING_SQL,
            {"account_id": account_id, "types": [t.value for t in QUALIFYING_ENTRY_TYPES]},
        )
        return int(result.scalar_one())

    async def resolve(self, db: AsyncSession, entry_id: int, status: str) -> JournalEntry:
        if status not in (EntryStatus.COMPLETED, EntryStatus.REJECTED):
            raise InternalError(f"Journal entries cannot be resolved to {status}")
        result = await db.execute(_RESOLVE_SQL, {"entry_id": entry_id, "status": status})
        row = result.fetchone()
        if row is None:
            current = await self.get(db, entry_id)
            if current is None:
                raise JournalEntryNotFoundError(entry_id)
            raise EntryAlreadyResolvedError(entry_id, current.status)
        return _row_to_entry(row)

    async def find_by_reference(
        self, db: AsyncSession, entry_type: str, reference_type: str, reference_id: str
    ) -> JournalEntry | None:
        result = await db.execute(
            _FIND_BY_REFERENCE_SQL,
            {
                "entry_type": entry_type,
                "reference_type": reference_type,
                "reference_id": reference_id,
            },
        )
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def count_pending(self, db: AsyncSession, account_id: str, entry_type: str) -> int:
        result = await db.execute(
            _COUNT_PENDING_SQL, {"account_id": account_id, "entry_type": entry_type}
        )
        return int(result.scalar_one())

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
        status: str | None,
    ) -> list[JournalEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "status": status,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def list_pending(
        self, db: AsyncSession, entry_type: str, limit: int
    ) -> list[JournalEntry]:
        result = await db.execute(
            _LIST_PENDING_SQL, {"entry_type": entry_type, "limit": limit}
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def write_event(
        self, db: AsyncSession, event_type: str, account_id: str, payload: dict[str, Any]
    ) -> None:
        """Insert one outbox row within the caller's transaction."""
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "event_type": event_type,
                "account_id": account_id,
                "payload": json.dumps(payload, default=str),
            },
        )

    async def list_events(
        self, db: AsyncSession, after_id: int | None, limit: int
    ) -> list[LedgerEvent]:
        result = await db.execute(_LIST_EVENTS_SQL, {"after_id": after_id, "limit": limit})
        return [_row_to_event(row) for row in result.fetchall()]

    async def mark_events_published(self, db: AsyncSession, event_ids: list[int]) -> int:
        if not event_ids:
            return 0
        result = await db.execute(_MARK_PUBLISHED_SQL, {"event_ids": event_ids})
        return int(result.rowcount or 0)
