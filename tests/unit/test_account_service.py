"""Tests for AccountApplicationService against in-memory repositories."""

from unittest.mock import AsyncMock

import pytest

from src.iv_account.application.service import MIN_DEPOSIT_CENTS, AccountApplicationService
from src.iv_common.cents import MAX_AMOUNT_CENTS
from src.iv_common.enums import DepositMethod, EntryStatus, EntryType
from src.iv_common.errors import (
    AccountAlreadyOnboardedError,
    AccountNotEmptyError,
    AccountNotFoundError,
    AccountSuspendedError,
    BelowMinimumError,
    InvalidAmountError,
    InvalidPinFormatError,
    ReferralCodeNotFoundError,
    WrongPinError,
)
from src.iv_gateway.auth.pin import hash_pin, verify_pin
from src.iv_journal.domain.models import NewJournalEntry
from tests.fakes import FakeAccountRepository, FakeJournalRepository, make_account


@pytest.fixture
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository(
        make_account("sponsor", referral_code="SPONSO1234"),
        make_account("investor", referred_by="sponsor", pin_hash=hash_pin("123456")),
    )


@pytest.fixture
def journal() -> FakeJournalRepository:
    return FakeJournalRepository()


@pytest.fixture
def service(accounts: FakeAccountRepository, journal: FakeJournalRepository) -> AccountApplicationService:
    return AccountApplicationService(accounts, journal)


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


class TestOnboard:
    async def test_creates_account_with_referrer(self, service, accounts, db) -> None:
        result = await service.onboard(db, "newbie", "Ana Costa", "654321", " sponso1234 ")

        assert result.account_id == "newbie"
        assert result.referred_by == "sponsor"
        assert result.referral_code.startswith("ANACOS")
        assert result.balance.total_balance_cents == 0
        assert verify_pin("654321", accounts.accounts["newbie"].pin_hash)
        db.commit.assert_awaited_once()

    async def test_without_referral(self, service, db) -> None:
        result = await service.onboard(db, "solo", "Solo", "654321", None)
        assert result.referred_by is None

    async def test_unknown_referral_code(self, service, accounts, db) -> None:
        with pytest.raises(ReferralCodeNotFoundError):
            await service.onboard(db, "newbie", "Ana", "654321", "NOPE0000")
        assert "newbie" not in accounts.accounts
        db.rollback.assert_awaited_once()

    async def test_twice_refused(self, service, db) -> None:
        with pytest.raises(AccountAlreadyOnboardedError):
            await service.onboard(db, "investor", "Again", "654321", None)

    async def test_bad_pin_refused_before_store(self, service, db) -> None:
        with pytest.raises(InvalidPinFormatError):
            await service.onboard(db, "newbie", "Ana", "12", None)
        db.commit.assert_not_awaited()

    async def test_pin_with_trailing_newline_refused(self, service, accounts, db) -> None:
        with pytest.raises(InvalidPinFormatError):
            await service.onboard(db, "newbie", "Ana", "123456\n", None)
        assert "newbie" not in accounts.accounts

    async def test_concurrent_onboarding_of_same_identity(self, journal, db) -> None:
        class RacingAccounts(FakeAccountRepository):
            async def create_account(self, db, account_id, *args):
                # the competing request commits between our existence check and insert
                if account_id not in self.accounts:
                    self.add(make_account(account_id, full_name="First"))
                return await super().create_account(db, account_id, *args)

        accounts = RacingAccounts()
        service = AccountApplicationService(accounts, journal)

        with pytest.raises(AccountAlreadyOnboardedError):
            await service.onboard(db, "newbie", "Second", "654321", None)
        assert accounts.accounts["newbie"].full_name == "First"
        db.rollback.assert_awaited_once()


class TestDeposit:
    async def test_credits_main_and_cascades(self, service, accounts, journal, db) -> None:
        result = await service.deposit(db, "investor", 10000)

        assert result.main_balance_cents == 10000
        assert result.deposited_display == "R$ 100.00"
        [deposit] = journal.of_type(EntryType.DEPOSIT)
        assert deposit.status == EntryStatus.COMPLETED
        assert deposit.description == "Deposit via PIX"
        assert deposit.details == {"method": "pix"}
        assert accounts.accounts["sponsor"].commission_balance == 1000

    async def test_crypto_method_label(self, service, journal, db) -> None:
        await service.deposit(db, "investor", 5000, DepositMethod.CRYPTO)
        assert journal.of_type(EntryType.DEPOSIT)[0].description == "Deposit via CRYPTO"

    async def test_below_minimum(self, service, journal, db) -> None:
        with pytest.raises(BelowMinimumError):
            await service.deposit(db, "investor", MIN_DEPOSIT_CENTS - 1)
        assert journal.entries == {}

    async def test_above_ceiling(self, service, accounts, journal, db) -> None:
        with pytest.raises(InvalidAmountError):
            await service.deposit(db, "investor", MAX_AMOUNT_CENTS + 1)
        assert accounts.accounts["investor"].main_balance == 0
        assert journal.entries == {}
        db.commit.assert_not_awaited()

    async def test_suspended_refused(self, service, accounts, journal, db) -> None:
        accounts.accounts["investor"].status = "suspended"
        with pytest.raises(AccountSuspendedError):
            await service.deposit(db, "investor", 10000)
        assert accounts.accounts["investor"].main_balance == 0
        assert journal.entries == {}

    async def test_unknown_account(self, service, db) -> None:
        with pytest.raises(AccountNotFoundError):
            await service.deposit(db, "ghost", 10000)


class TestBalanceAndProfile:
    async def test_balance_splits_buckets(self, service, accounts, db) -> None:
        accounts.accounts["investor"].main_balance = 650000
        accounts.accounts["investor"].commission_balance = 1200

        balance = await service.get_balance(db, "investor")

        assert balance.total_balance_cents == 651200
        assert balance.main_balance_display == "R$ 6,500.00"
        assert balance.commission_balance_display == "R$ 12.00"

    async def test_profile_hides_pin_hash(self, service, db) -> None:
        profile = await service.get_profile(db, "investor")
        assert "pin_hash" not in profile.model_dump()


class TestChangePin:
    async def test_changes_hash(self, service, accounts, db) -> None:
        await service.change_pin(db, "investor", "123456", "999999")
        assert verify_pin("999999", accounts.accounts["investor"].pin_hash)

    async def test_wrong_current_pin(self, service, accounts, db) -> None:
        with pytest.raises(WrongPinError):
            await service.change_pin(db, "investor", "000000", "999999")
        assert verify_pin("123456", accounts.accounts["investor"].pin_hash)


class TestReferrals:
    async def test_lists_direct_referrals(self, service, db) -> None:
        result = await service.list_referrals(db, "sponsor")
        assert result.referral_code == "SPONSO1234"
        assert result.total_referrals == 1
        assert [r.account_id for r in result.items] == ["investor"]


class TestDeleteAccount:
    async def test_empty_account_deleted(self, service, accounts, db) -> None:
        await service.delete_account(db, "sponsor")
        assert "sponsor" not in accounts.accounts
        assert accounts.accounts["investor"].referred_by is None

    async def test_refused_with_balance(self, service, accounts, db) -> None:
        accounts.accounts["investor"].commission_balance = 1
        with pytest.raises(AccountNotEmptyError):
            await service.delete_account(db, "investor")

    async def test_refused_with_pending_withdrawal(self, service, accounts, journal, db) -> None:
        await journal.append(
            None,
            NewJournalEntry("investor", EntryType.WITHDRAWAL, 5000, "BRL", EntryStatus.PENDING),
        )
        with pytest.raises(AccountNotEmptyError):
            await service.delete_account(db, "investor")
        assert "investor" in accounts.accounts

    async def test_admin_deletion_uses_same_guards(self, service, accounts, db) -> None:
        accounts.accounts["investor"].main_balance = 500
        with pytest.raises(AccountNotEmptyError):
            await service.delete_account(db, "investor", deleted_by="admin-1")

        accounts.accounts["investor"].main_balance = 0
        await service.delete_account(db, "investor", deleted_by="admin-1")
        assert "investor" not in accounts.accounts
