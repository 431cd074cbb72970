"""WithdrawalApplicationService — payout destinations, requests, admin resolution.

A request debits the gross amount immediately (main first, then commission)
and leaves a ``pending`` journal entry whose details record fee, net,
destination snapshot and the bucket split. The administrator either
completes it (no balance change) or rejects it, which puts the gross
amount back into exactly the buckets it came from.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.iv_account.domain.policies import ensure_active
from src.iv_account.domain.repository import AccountRepositoryProtocol
from src.iv_account.infrastructure.persistence import AccountRepository
from src.iv_common.enums import (
    DestinationKeyType,
    EntryStatus,
    EntryType,
    LedgerEventType,
    ReferenceType,
)
from src.iv_common.errors import (
    AccountNotFoundError,
    DestinationNotFoundError,
    EntryAlreadyResolvedError,
    JournalEntryNotFoundError,
    VoucherWithdrawalError,
)
from src.iv_common.unit_of_work import run_in_transaction
from src.iv_gateway.auth.pin import verify_pin
from src.iv_journal.domain.models import JournalEntry, NewJournalEntry
from src.iv_journal.domain.repository import JournalRepositoryProtocol
from src.iv_journal.infrastructure.persistence import JournalRepository
from src.iv_withdrawal.application.schemas import (
    DestinationItem,
    QuoteResponse,
    WithdrawalItem,
)
from src.iv_withdrawal.domain.flow import (
    WITHDRAWAL_FEE_BPS,
    WithdrawalFlow,
    validate_destination_key,
)
from src.iv_withdrawal.domain.models import NewPayoutDestination
from src.iv_withdrawal.domain.repository import DestinationRepositoryProtocol
from src.iv_withdrawal.infrastructure.persistence import DestinationRepository

logger = logging.getLogger(__name__)


class WithdrawalApplicationService:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        journal: JournalRepositoryProtocol | None = None,
        destinations: DestinationRepositoryProtocol | None = None,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._journal: JournalRepositoryProtocol = journal or JournalRepository()
        self._destinations: DestinationRepositoryProtocol = (
            destinations or DestinationRepository()
        )

    # ------------------------------------------------------------------
    # Payout destinations
    # ------------------------------------------------------------------

    async def list_destinations(self, db: AsyncSession, account_id: str) -> list[DestinationItem]:
        rows = await self._destinations.list_destinations(db, account_id)
        return [DestinationItem.from_destination(d) for d in rows]

    async def add_destination(
        self,
        db: AsyncSession,
        account_id: str,
        key_type: DestinationKeyType,
        key: str,
        label: str | None,
        network_or_bank: str | None,
    ) -> DestinationItem:
        key = key.strip()
        validate_destination_key(key_type, key, network_or_bank)
        if key_type == DestinationKeyType.USDT:
            network_or_bank = (network_or_bank or "").upper()
        default_label = "USDT wallet" if key_type == DestinationKeyType.USDT else "My PIX key"
        new = NewPayoutDestination(
            account_id=account_id,
            key_type=key_type.value,
            key=key,
            label=(label or "").strip() or default_label,
            network_or_bank=network_or_bank or None,
        )
        destination = await run_in_transaction(
            db, lambda: self._destinations.create_destination(db, new)
        )
        logger.info(
            "Payout destination added: account=%s id=%d type=%s",
            account_id,
            destination.id,
            destination.key_type,
        )
        return DestinationItem.from_destination(destination)

    async def remove_destination(
        self, db: AsyncSession, account_id: str, destination_id: int
    ) -> None:
        await run_in_transaction(
            db, lambda: self._destinations.delete_destination(db, account_id, destination_id)
        )
        logger.info("Payout destination removed: account=%s id=%d", account_id, destination_id)

    # ------------------------------------------------------------------
    # User flow
    # ------------------------------------------------------------------

    async def quote(self, db: AsyncSession, account_id: str, amount_cents: int) -> QuoteResponse:
        """AMOUNT_ENTRY only: validate and price the withdrawal, no side effects."""
        account = await self._accounts.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        ensure_active(account)
        flow = WithdrawalFlow(account)
        try:
            q = flow.enter_amount(amount_cents)
        except VoucherWithdrawalError:
            logger.warning("Voucher account refused withdrawal quote: account=%s", account_id)
            raise
        return QuoteResponse.from_quote(q, flow.step.value)

    async def request_withdrawal(
        self,
        db: AsyncSession,
        account_id: str,
        amount_cents: int,
        destination_id: int,
        pin: str,
    ) -> WithdrawalItem:
        async def _op() -> JournalEntry:
            # Authoritative row, locked for the rest of the unit of work
            account = await self._accounts.get_account_for_update(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            ensure_active(account)

            flow = WithdrawalFlow(account)
            q = flow.enter_amount(amount_cents)
            destination = await self._destinations.get_destination(db, destination_id)
            if destination is None:
                raise DestinationNotFoundError(destination_id)
            flow.select_destination(destination)
            flow.confirm_pin(verify_pin(pin, account.pin_hash))

            debit = await self._accounts.debit(db, account_id, q.amount)
            entry = await self._journal.append(
                db,
                NewJournalEntry(
                    account_id=account_id,
                    entry_type=EntryType.WITHDRAWAL,
                    amount=q.amount,
                    asset=settings.LEDGER_CURRENCY,
                    status=EntryStatus.PENDING,
                    description=(
                        f"{destination.key_type.upper()} withdrawal to {destination.label} "
                        f"(fee {WITHDRAWAL_FEE_BPS // 100}%)"
                    ),
                    reference_type=ReferenceType.DESTINATION,
                    reference_id=str(destination.id),
                    details={
                        "fee": q.fee,
                        "net": q.net,
                        "fee_bps": WITHDRAWAL_FEE_BPS,
                        "from_main": debit.from_main,
                        "from_commission": debit.from_commission,
                        "destination": {
                            "id": destination.id,
                            "key_type": destination.key_type,
                            "key": destination.key,
                            "label": destination.label,
                            "network_or_bank": destination.network_or_bank,
                        },
                    },
                ),
            )
            await self._journal.write_event(
                db,
                LedgerEventType.WITHDRAWAL_REQUESTED,
                account_id,
                {"entry_id": entry.id, "amount": q.amount, "fee": q.fee, "net": q.net},
            )
            return entry

        try:
            entry = await run_in_transaction(db, _op)
        except VoucherWithdrawalError:
            logger.warning("Voucher account refused withdrawal: account=%s", account_id)
            raise
        logger.info(
            "Withdrawal requested: account=%s entry=%d amount=%d net=%d",
            account_id,
            entry.id,
            entry.amount,
            entry.details["net"],
        )
        return WithdrawalItem.from_entry(entry)

    # ------------------------------------------------------------------
    # Administrator side
    # ------------------------------------------------------------------

    async def list_pending(self, db: AsyncSession, limit: int) -> list[WithdrawalItem]:
        entries = await self._journal.list_pending(db, EntryType.WITHDRAWAL, limit)
        return [WithdrawalItem.from_entry(e) for e in entries]

    async def get_withdrawal(self, db: AsyncSession, entry_id: int) -> WithdrawalItem:
        entry = await self._journal.get(db, entry_id)
        if entry is None or entry.entry_type != EntryType.WITHDRAWAL:
            raise JournalEntryNotFoundError(entry_id)
        return WithdrawalItem.from_entry(entry)

    async def resolve(
        self, db: AsyncSession, entry_id: int, approved: bool, admin_id: str
    ) -> WithdrawalItem:
        """Terminal transition of a pending withdrawal. Rejection refunds the gross amount."""

        async def _op() -> JournalEntry:
            entry = await self._journal.get_for_update(db, entry_id)
            if entry is None or entry.entry_type != EntryType.WITHDRAWAL:
                raise JournalEntryNotFoundError(entry_id)
            if not entry.is_pending:
                raise EntryAlreadyResolvedError(entry_id, entry.status)

            new_status = EntryStatus.COMPLETED if approved else EntryStatus.REJECTED
            resolved = await self._journal.resolve(db, entry_id, new_status)
            if not approved:
                from_main = int(entry.details.get("from_main", entry.amount))
                from_commission = int(entry.details.get("from_commission", 0))
                await self._accounts.restore(db, entry.account_id, from_main, from_commission)
            await self._journal.write_event(
                db,
                LedgerEventType.WITHDRAWAL_RESOLVED,
                entry.account_id,
                {
                    "entry_id": entry_id,
                    "status": new_status.value,
                    "amount": entry.amount,
                    "refunded": 0 if approved else entry.amount,
                    "resolved_by": admin_id,
                },
            )
            return resolved

        entry = await run_in_transaction(db, _op)
        logger.info(
            "Withdrawal %s: entry=%d account=%s amount=%d by=%s",
            entry.status,
            entry_id,
            entry.account_id,
            entry.amount,
            admin_id,
        )
        return WithdrawalItem.from_entry(entry)
