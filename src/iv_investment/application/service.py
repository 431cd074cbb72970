"""InvestmentApplicationService — open, confirm, close and list positions.

Funding methods decide what happens at open time:

  balance → the gross amount is debited now (main first, then commission)
            and the journal entry is ``completed``;
  pix     → paid outside the ledger, no debit, entry ``completed``;
  crypto  → no debit, entry ``pending`` until ``confirm_payment``.

A completed investment entry triggers the commission cascade in the same
transaction. Returns are not accrued; ``current_balance`` starts at the
invested amount and is paid back to the main bucket when the position is
closed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.iv_account.domain.policies import ensure_active
from src.iv_account.domain.repository import AccountRepositoryProtocol
from src.iv_account.infrastructure.persistence import AccountRepository
from src.iv_commission.domain.cascader import CommissionCascader
from src.iv_common.enums import (
    Bucket,
    EntryStatus,
    EntryType,
    FundingMethod,
    LedgerEventType,
    ReferenceType,
)
from src.iv_common.errors import (
    AccountNotFoundError,
    AmountOutOfRangeError,
    EntryAlreadyResolvedError,
    JournalEntryNotFoundError,
    OfferNotFoundError,
    PositionAlreadyClosedError,
    PositionNotFoundError,
    PositionPaymentPendingError,
)
from src.iv_common.unit_of_work import run_in_transaction
from src.iv_investment.application.schemas import (
    OfferItem,
    OpenPositionResponse,
    PositionItem,
    PositionListResponse,
)
from src.iv_investment.domain.catalog import find_offer, list_offers
from src.iv_investment.domain.models import NewPosition, Position
from src.iv_investment.domain.repository import PositionRepositoryProtocol
from src.iv_investment.infrastructure.persistence import PositionRepository
from src.iv_journal.domain.models import NewJournalEntry
from src.iv_journal.domain.repository import JournalRepositoryProtocol
from src.iv_journal.infrastructure.persistence import JournalRepository

logger = logging.getLogger(__name__)


class InvestmentApplicationService:
    def __init__(
        self,
        positions: PositionRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        journal: JournalRepositoryProtocol | None = None,
    ) -> None:
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._journal: JournalRepositoryProtocol = journal or JournalRepository()
        self._cascader = CommissionCascader(self._accounts, self._journal)

    def list_offers(self) -> list[OfferItem]:
        return [OfferItem.from_offer(o) for o in list_offers()]

    async def open_position(
        self,
        db: AsyncSession,
        account_id: str,
        offer_name: str,
        amount_cents: int,
        funding_method: FundingMethod,
    ) -> OpenPositionResponse:
        offer = find_offer(offer_name)
        if offer is None:
            raise OfferNotFoundError(offer_name)
        if not offer.accepts(amount_cents):
            raise AmountOutOfRangeError(offer.name, offer.min_amount, offer.max_amount)

        async def _op() -> OpenPositionResponse:
            account = await self._accounts.get_account_for_update(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            ensure_active(account)

            details: dict[str, object] = {
                "offer": offer.name,
                "funding_method": funding_method.value,
            }
            charged = 0
            if funding_method == FundingMethod.BALANCE:
                debit = await self._accounts.debit(db, account_id, amount_cents)
                charged = amount_cents
                details["from_main"] = debit.from_main
                details["from_commission"] = debit.from_commission

            status = (
                EntryStatus.PENDING
                if funding_method == FundingMethod.CRYPTO
                else EntryStatus.COMPLETED
            )
            entry = await self._journal.append(
                db,
                NewJournalEntry(
                    account_id=account_id,
                    entry_type=EntryType.INVESTMENT,
                    amount=amount_cents,
                    asset=settings.LEDGER_CURRENCY,
                    status=status,
                    description=f"Investment via {funding_method.value.upper()}: {offer.name}",
                    details=details,
                ),
            )
            position = await self._positions.create_position(
                db,
                NewPosition(
                    account_id=account_id,
                    offer_name=offer.name,
                    initial_amount=amount_cents,
                    risk_level=offer.risk_level.value,
                    funding_method=funding_method.value,
                    journal_entry_id=entry.id,
                ),
            )
            await self._journal.write_event(
                db,
                LedgerEventType.INVESTMENT_OPENED,
                account_id,
                {
                    "position_id": position.id,
                    "journal_entry_id": entry.id,
                    "offer": offer.name,
                    "amount": amount_cents,
                    "funding_method": funding_method.value,
                    "entry_status": status.value,
                },
            )
            if status == EntryStatus.COMPLETED:
                await self._cascader.on_entry_completed(db, entry)
            return OpenPositionResponse(
                position=PositionItem.from_position(position),
                journal_entry_id=entry.id,
                entry_status=status.value,
                charged_cents=charged,
            )

        result = await run_in_transaction(db, _op)
        logger.info(
            "Position opened: account=%s offer=%s amount=%d method=%s entry_status=%s",
            account_id,
            offer.name,
            amount_cents,
            funding_method.value,
            result.entry_status,
        )
        return result

    async def confirm_payment(
        self, db: AsyncSession, entry_id: int, approved: bool
    ) -> PositionItem:
        """Settle a pending crypto-funded investment.

        Approval completes the entry and runs the commission cascade;
        rejection marks the entry rejected and closes the position without
        paying anything out (no money was ever taken).
        """

        async def _op() -> Position:
            entry = await self._journal.get_for_update(db, entry_id)
            if entry is None or entry.entry_type != EntryType.INVESTMENT:
                raise JournalEntryNotFoundError(entry_id)
            if not entry.is_pending:
                raise EntryAlreadyResolvedError(entry_id, entry.status)
            position = await self._positions.get_by_entry_for_update(db, entry_id)
            if position is None:
                raise JournalEntryNotFoundError(entry_id)

            new_status = EntryStatus.COMPLETED if approved else EntryStatus.REJECTED
            resolved = await self._journal.resolve(db, entry_id, new_status)
            if approved:
                await self._cascader.on_entry_completed(db, resolved)
                return position
            return await self._positions.close_position(db, position.id)

        position = await run_in_transaction(db, _op)
        logger.info(
            "Investment payment %s: entry=%d position=%d",
            "confirmed" if approved else "rejected",
            entry_id,
            position.id,
        )
        return PositionItem.from_position(position)

    async def close_position(self, db: AsyncSession, position_id: int) -> PositionItem:
        """Close an active position and pay its current balance into the main bucket."""

        async def _op() -> Position:
            position = await self._positions.get_position_for_update(db, position_id)
            if position is None:
                raise PositionNotFoundError(position_id)
            if not position.is_active:
                raise PositionAlreadyClosedError(position_id)
            if position.journal_entry_id is not None:
                funding = await self._journal.get(db, position.journal_entry_id)
                if funding is not None and funding.is_pending:
                    raise PositionPaymentPendingError(position_id)

            closed = await self._positions.close_position(db, position_id)
            if closed.current_balance > 0:
                await self._accounts.credit(
                    db, closed.account_id, closed.current_balance, Bucket.MAIN
                )
                await self._journal.append(
                    db,
                    NewJournalEntry(
                        account_id=closed.account_id,
                        entry_type=EntryType.SELL,
                        amount=closed.current_balance,
                        asset=settings.LEDGER_CURRENCY,
                        status=EntryStatus.COMPLETED,
                        description=f"Position closed: {closed.offer_name}",
                        reference_type=ReferenceType.POSITION,
                        reference_id=str(closed.id),
                        details={
                            "initial_amount": closed.initial_amount,
                            "total_return_bps": closed.total_return_bps,
                        },
                    ),
                )
            return closed

        position = await run_in_transaction(db, _op)
        logger.info(
            "Position closed: position=%d account=%s paid=%d",
            position.id,
            position.account_id,
            position.current_balance,
        )
        return PositionItem.from_position(position)

    async def list_positions(
        self, db: AsyncSession, account_id: str, status: str | None
    ) -> PositionListResponse:
        positions = await self._positions.list_positions(db, account_id, status)
        return PositionListResponse(
            items=[PositionItem.from_position(p) for p in positions],
            total=len(positions),
        )
