"""AccountApplicationService — onboarding, balance, deposits, PIN, referrals, deletion.

Every mutating method runs its repository calls through ``run_in_transaction``
so the balance change, the journal entry and any commission cascade commit
together or not at all. Read-only methods run without explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.iv_account.application.schemas import (
    AccountResponse,
    BalanceResponse,
    DepositResponse,
    ReferralItem,
    ReferralsResponse,
)
from src.iv_account.domain.models import Account
from src.iv_account.domain.policies import (
    ensure_active,
    generate_referral_code,
    validate_pin_format,
)
from src.iv_account.domain.repository import AccountRepositoryProtocol
from src.iv_account.infrastructure.persistence import AccountRepository
from src.iv_commission.domain.cascader import CommissionCascader
from src.iv_common.cents import validate_amount
from src.iv_common.enums import Bucket, DepositMethod, EntryStatus, EntryType
from src.iv_common.errors import (
    AccountAlreadyOnboardedError,
    AccountNotEmptyError,
    AccountNotFoundError,
    BelowMinimumError,
    InternalError,
    ReferralCodeNotFoundError,
    WrongPinError,
)
from src.iv_common.unit_of_work import run_in_transaction
from src.iv_gateway.auth.pin import hash_pin, verify_pin
from src.iv_journal.domain.models import NewJournalEntry
from src.iv_journal.domain.repository import JournalRepositoryProtocol
from src.iv_journal.infrastructure.persistence import JournalRepository

logger = logging.getLogger(__name__)

MIN_DEPOSIT_CENTS = 1000   # R$ 10,00
_REFERRAL_CODE_ATTEMPTS = 5


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        journal: JournalRepositoryProtocol | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._journal: JournalRepositoryProtocol = journal or JournalRepository()
        self._cascader = CommissionCascader(self._repo, self._journal)

    async def _load(self, db: AsyncSession, account_id: str, for_update: bool = False) -> Account:
        if for_update:
            account = await self._repo.get_account_for_update(db, account_id)
        else:
            account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def onboard(
        self,
        db: AsyncSession,
        account_id: str,
        full_name: str,
        pin: str,
        referral_code: str | None,
    ) -> AccountResponse:
        validate_pin_format(pin)
        pin_hash = hash_pin(pin)

        async def _op() -> Account:
            if await self._repo.get_account(db, account_id) is not None:
                raise AccountAlreadyOnboardedError(account_id)
            referred_by = None
            if referral_code:
                sponsor = await self._repo.get_by_referral_code(db, referral_code.strip().upper())
                if sponsor is None:
                    raise ReferralCodeNotFoundError(referral_code)
                referred_by = sponsor.id
            for _ in range(_REFERRAL_CODE_ATTEMPTS):
                created = await self._repo.create_account(
                    db,
                    account_id,
                    pin_hash,
                    generate_referral_code(full_name),
                    referred_by,
                    full_name,
                )
                if created is not None:
                    return created
                # Lost the insert to a concurrent onboarding of the same identity
                if await self._repo.get_account(db, account_id) is not None:
                    raise AccountAlreadyOnboardedError(account_id)
            raise InternalError("Could not allocate a unique referral code")

        account = await run_in_transaction(db, _op)
        logger.info(
            "Account onboarded: account=%s referred_by=%s", account.id, account.referred_by
        )
        return AccountResponse.from_account(account)

    async def get_profile(self, db: AsyncSession, account_id: str) -> AccountResponse:
        return AccountResponse.from_account(await self._load(db, account_id))

    async def get_balance(self, db: AsyncSession, account_id: str) -> BalanceResponse:
        return BalanceResponse.from_account(await self._load(db, account_id))

    async def deposit(
        self,
        db: AsyncSession,
        account_id: str,
        amount_cents: int,
        method: DepositMethod = DepositMethod.PIX,
    ) -> DepositResponse:
        """Credit a confirmed external payment to the main bucket and cascade commission."""
        validate_amount(amount_cents)
        if amount_cents < MIN_DEPOSIT_CENTS:
            raise BelowMinimumError("deposit", MIN_DEPOSIT_CENTS)

        async def _op() -> DepositResponse:
            ensure_active(await self._load(db, account_id, for_update=True))
            account = await self._repo.credit(db, account_id, amount_cents, Bucket.MAIN)
            entry = await self._journal.append(
                db,
                NewJournalEntry(
                    account_id=account_id,
                    entry_type=EntryType.DEPOSIT,
                    amount=amount_cents,
                    asset=settings.LEDGER_CURRENCY,
                    status=EntryStatus.COMPLETED,
                    description=f"Deposit via {method.value.upper()}",
                    details={"method": method.value},
                ),
            )
            await self._cascader.on_entry_completed(db, entry)
            return DepositResponse.from_result(account, amount_cents, entry.id)

        result = await run_in_transaction(db, _op)
        logger.info("Deposit completed: account=%s amount=%d", account_id, amount_cents)
        return result

    async def change_pin(
        self, db: AsyncSession, account_id: str, current_pin: str, new_pin: str
    ) -> None:
        validate_pin_format(new_pin)
        new_hash = hash_pin(new_pin)

        async def _op() -> None:
            account = await self._load(db, account_id, for_update=True)
            ensure_active(account)
            if not verify_pin(current_pin, account.pin_hash):
                raise WrongPinError()
            await self._repo.update_pin(db, account_id, new_hash)

        await run_in_transaction(db, _op)
        logger.info("Payout PIN changed: account=%s", account_id)

    async def list_referrals(self, db: AsyncSession, account_id: str) -> ReferralsResponse:
        account = await self._load(db, account_id)
        referrals = await self._repo.list_referrals(db, account_id)
        return ReferralsResponse(
            referral_code=account.referral_code,
            total_referrals=len(referrals),
            total_commission_cents=sum(r.commission_earned for r in referrals),
            items=[ReferralItem.from_referral(r) for r in referrals],
        )

    async def delete_account(
        self, db: AsyncSession, account_id: str, deleted_by: str | None = None
    ) -> None:
        """Hard-delete on explicit request. Refused while funds or withdrawals are outstanding.

        ``deleted_by`` is the administrator id when the owner did not ask for it.
        """

        async def _op() -> None:
            account = await self._load(db, account_id, for_update=True)
            if account.total_balance > 0:
                raise AccountNotEmptyError("withdraw or spend the remaining balance first")
            pending = await self._journal.count_pending(db, account_id, EntryType.WITHDRAWAL)
            if pending:
                raise AccountNotEmptyError("a withdrawal is still awaiting approval")
            await self._repo.delete_account(db, account_id)

        await run_in_transaction(db, _op)
        if deleted_by is None:
            logger.info("Account deleted on request: account=%s", account_id)
        else:
            logger.warning("Account deleted by admin: account=%s by=%s", account_id, deleted_by)
