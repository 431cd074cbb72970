"""Admin application service — account listing and edits, status changes, stats, event outbox.

Every write raises a visible error when it matched nothing; nothing here
silently succeeds.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.application.schemas import AccountResponse
from src.iv_account.domain.models import Account
from src.iv_account.domain.repository import AccountRepositoryProtocol
from src.iv_account.infrastructure.persistence import AccountRepository
from src.iv_admin.application.schemas import AccountPage, AdminStatsResponse, LedgerEventItem
from src.iv_common.cents import cents_to_display
from src.iv_common.enums import (
    AccountStatus,
    EntryStatus,
    EntryType,
    FundingMethod,
    LedgerEventType,
)
from src.iv_common.errors import AccountNotFoundError, InternalError
from src.iv_common.pagination import keyset_cursor_decode, keyset_cursor_encode
from src.iv_common.unit_of_work import run_in_transaction
from src.iv_journal.domain.repository import JournalRepositoryProtocol
from src.iv_journal.infrastructure.persistence import JournalRepository

logger = logging.getLogger(__name__)

_STATS_SQL = text("""
    SELECT
        (SELECT COUNT(*) FROM accounts) AS total_accounts,
        (SELECT COUNT(*) FROM journal_entries
          WHERE entry_type = :withdrawal AND status = :pending) AS pending_withdrawals,
        (SELECT COALESCE(SUM(p.initial_amount), 0)
           FROM positions p
           JOIN journal_entries j ON j.id = p.journal_entry_id
          WHERE p.funding_method <> :balance AND j.status = :completed) AS external_volume
""")


class AdminService:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        journal: JournalRepositoryProtocol | None = None,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._journal: JournalRepositoryProtocol = journal or JournalRepository()

    async def get_account(self, db: AsyncSession, account_id: str) -> AccountResponse:
        account = await self._accounts.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return AccountResponse.from_account(account)

    async def set_status(
        self,
        db: AsyncSession,
        account_id: str,
        status: AccountStatus,
        reason: str | None,
        admin_id: str,
    ) -> AccountResponse:
        """Suspend, ban or reactivate. Takes effect at the next debit of any in-flight request."""

        async def _op() -> Account:
            before = await self._accounts.get_account_for_update(db, account_id)
            if before is None:
                raise AccountNotFoundError(account_id)
            stored_reason = None if status == AccountStatus.ACTIVE else reason
            account = await self._accounts.set_status(db, account_id, status, stored_reason)
            await self._journal.write_event(
                db,
                LedgerEventType.ACCOUNT_STATUS_CHANGED,
                account_id,
                {
                    "from": before.status,
                    "to": status.value,
                    "reason": stored_reason,
                    "changed_by": admin_id,
                },
            )
            return account

        account = await run_in_transaction(db, _op)
        logger.warning(
            "Account status changed: account=%s status=%s by=%s", account_id, status.value, admin_id
        )
        return AccountResponse.from_account(account)

    async def update_account(
        self,
        db: AsyncSession,
        account_id: str,
        admin_id: str,
        is_voucher: bool | None = None,
        is_admin: bool | None = None,
        full_name: str | None = None,
        main_balance: int | None = None,
        commission_balance: int | None = None,
    ) -> AccountResponse:
        async def _op() -> Account:
            account = await self._accounts.get_account_for_update(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            if is_voucher is not None or is_admin is not None or full_name is not None:
                account = await self._accounts.update_profile(
                    db, account_id, is_voucher, is_admin, full_name
                )
            if main_balance is not None or commission_balance is not None:
                account = await self._accounts.set_balances(
                    db,
                    account_id,
                    account.main_balance if main_balance is None else main_balance,
                    account.commission_balance if commission_balance is None else commission_balance,
                )
            return account

        account = await run_in_transaction(db, _op)
        logger.info(
            "Account edited by admin: account=%s by=%s voucher=%s admin=%s main=%s commission=%s",
            account_id,
            admin_id,
            is_voucher,
            is_admin,
            main_balance,
            commission_balance,
        )
        return AccountResponse.from_account(account)

    async def list_accounts(
        self, db: AsyncSession, search: str | None, cursor: str | None, limit: int
    ) -> AccountPage:
        after = keyset_cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        accounts = await self._accounts.list_accounts(db, search, after, limit + 1)
        has_more = len(accounts) > limit
        page = accounts[:limit]
        next_cursor = None
        if has_more and page and page[-1].created_at is not None:
            next_cursor = keyset_cursor_encode(page[-1].created_at, page[-1].id)
        return AccountPage(
            items=[AccountResponse.from_account(a) for a in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_stats(self, db: AsyncSession) -> AdminStatsResponse:
        """Platform totals for the admin dashboard.

        External investment volume counts positions paid outside the ledger
        (PIX, crypto) whose payment was confirmed.
        """
        row = (
            await db.execute(
                _STATS_SQL,
                {
                    "withdrawal": EntryType.WITHDRAWAL.value,
                    "pending": EntryStatus.PENDING.value,
                    "completed": EntryStatus.COMPLETED.value,
                    "balance": FundingMethod.BALANCE.value,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Admin stats query returned no row")
        volume = int(row.external_volume)
        return AdminStatsResponse(
            total_accounts=int(row.total_accounts),
            pending_withdrawals=int(row.pending_withdrawals),
            external_investment_cents=volume,
            external_investment_display=cents_to_display(volume),
        )

    async def list_events(
        self, db: AsyncSession, after_id: int | None, limit: int
    ) -> list[LedgerEventItem]:
        events = await self._journal.list_events(db, after_id, limit)
        return [LedgerEventItem.from_event(e) for e in events]

    async def ack_events(self, db: AsyncSession, event_ids: list[int]) -> int:
        count = await run_in_transaction(
            db, lambda: self._journal.mark_events_published(db, event_ids)
        )
        logger.info("Ledger events acknowledged: requested=%d marked=%d", len(event_ids), count)
        return count
