"""Commission cascader — one-hop referral commissions from qualifying entries.

Runs inside the caller's transaction, right after a journal entry of type
deposit or investment reaches ``completed``:

  1. No referrer → no-op.
  2. Lock the source account row, then count its completed qualifying
     entries. The lock serializes concurrent first deposits of the same
     account so exactly one of them sees ``count == 1``.
  3. 10 % on the first qualifying entry, 3 % afterwards (floor to cents).
  4. Credit the referrer's commission bucket (never main), append a completed
     ``commission`` entry referencing the source entry, write an outbox event.

Commission entries never cascade further. A commission already recorded for
the same source entry makes the call a no-op, so a retried unit of work
cannot pay twice (also backed by a unique index on the reference).
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.repository import AccountRepositoryProtocol
from src.iv_commission.domain.rates import commission_for
from src.iv_common.cents import bps_to_percent
from src.iv_common.enums import (
    QUALIFYING_ENTRY_TYPES,
    Bucket,
    EntryStatus,
    EntryType,
    LedgerEventType,
    ReferenceType,
)
from src.iv_journal.domain.models import JournalEntry, NewJournalEntry
from src.iv_journal.domain.repository import JournalRepositoryProtocol

logger = logging.getLogger(__name__)


class CommissionCascader:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol,
        journal: JournalRepositoryProtocol,
    ) -> None:
        self._accounts = accounts
        self._journal = journal

    async def on_entry_completed(
        self, db: AsyncSession, source: JournalEntry
    ) -> JournalEntry | None:
        """Credit the referrer for ``source`` if it qualifies. Returns the commission entry."""
        if source.entry_type not in QUALIFYING_ENTRY_TYPES:
            return None
        if source.status != EntryStatus.COMPLETED:
            return None

        account = await self._accounts.get_account_for_update(db, source.account_id)
        if account is None or not account.referred_by:
            return None
        referrer_id = account.referred_by

        existing = await self._journal.find_by_reference(
            db, EntryType.COMMISSION, ReferenceType.JOURNAL, str(source.id)
        )
        if existing is not None:
            logger.info("Commission idempotency hit: source_entry=%d", source.id)
            return existing

        is_first = await self._journal.count_qualifying(db, source.account_id) == 1
        rate_bps, commission = commission_for(source.amount, is_first)
        if commission <= 0:
            return None

        await self._accounts.credit(db, referrer_id, commission, Bucket.COMMISSION)
        source_label = EntryType(source.entry_type).value.capitalize()
        entry = await self._journal.append(
            db,
            NewJournalEntry(
                account_id=referrer_id,
                entry_type=EntryType.COMMISSION,
                amount=commission,
                asset=source.asset,
                status=EntryStatus.COMPLETED,
                description=f"{bps_to_percent(rate_bps)} commission ({source_label})",
                reference_type=ReferenceType.JOURNAL,
                reference_id=str(source.id),
                details={
                    "source_account_id": source.account_id,
                    "source_entry_id": source.id,
                    "source_type": source.entry_type,
                    "source_amount": source.amount,
                    "rate_bps": rate_bps,
                    "first_qualifying": is_first,
                },
            ),
        )
        await self._journal.write_event(
            db,
            LedgerEventType.COMMISSION_CREDITED,
            referrer_id,
            {
                "commission_entry_id": entry.id,
                "source_entry_id": source.id,
                "source_account_id": source.account_id,
                "amount": commission,
                "rate_bps": rate_bps,
            },
        )
        logger.info(
            "Commission credited: referrer=%s amount=%d rate=%dbps source_entry=%d",
            referrer_id,
            commission,
            rate_bps,
            source.id,
        )
        return entry
