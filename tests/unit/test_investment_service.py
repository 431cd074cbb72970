"""Tests for InvestmentApplicationService and the offer catalog."""

from unittest.mock import AsyncMock

import pytest

from src.iv_common.enums import EntryStatus, EntryType, FundingMethod, LedgerEventType
from src.iv_common.errors import (
    AccountSuspendedError,
    AmountOutOfRangeError,
    EntryAlreadyResolvedError,
    InsufficientFundsError,
    OfferNotFoundError,
    PositionAlreadyClosedError,
    PositionNotFoundError,
    PositionPaymentPendingError,
)
from src.iv_investment.application.service import InvestmentApplicationService
from src.iv_investment.domain.catalog import find_offer, list_offers
from tests.fakes import (
    FakeAccountRepository,
    FakeJournalRepository,
    FakePositionRepository,
    make_account,
)


@pytest.fixture
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository(
        make_account("sponsor"),
        make_account("investor", main=20000, commission=30000, referred_by="sponsor"),
    )


@pytest.fixture
def journal() -> FakeJournalRepository:
    return FakeJournalRepository()


@pytest.fixture
def positions() -> FakePositionRepository:
    return FakePositionRepository()


@pytest.fixture
def service(positions, accounts, journal) -> InvestmentApplicationService:
    return InvestmentApplicationService(positions, accounts, journal)


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


class TestCatalog:
    def test_sorted_by_minimum(self) -> None:
        assert [o.name for o in list_offers()] == [
            "Quantum Alpha",
            "Crypto Velocity",
            "Global Elite",
        ]

    def test_find_is_case_insensitive(self) -> None:
        offer = find_offer("  quantum ALPHA ")
        assert offer is not None and offer.name == "Quantum Alpha"
        assert find_offer("Moon Shot") is None

    def test_range_inclusive(self) -> None:
        offer = find_offer("Quantum Alpha")
        assert offer is not None
        assert offer.accepts(5000) and offer.accepts(30000)
        assert not offer.accepts(4999) and not offer.accepts(30001)

    def test_listing_display(self, service) -> None:
        first = service.list_offers()[0]
        assert first.target_return == "+100%"
        assert first.min_amount_display == "R$ 50.00"


class TestOpenPosition:
    async def test_balance_funding_debits_main_first(self, service, accounts, journal, db) -> None:
        result = await service.open_position(
            db, "investor", "Quantum Alpha", 25000, FundingMethod.BALANCE
        )

        assert result.entry_status == "completed"
        assert result.charged_cents == 25000
        assert result.position.current_balance_cents == 25000
        investor = accounts.accounts["investor"]
        assert (investor.main_balance, investor.commission_balance) == (0, 25000)
        [entry] = journal.of_type(EntryType.INVESTMENT)
        assert entry.details["from_main"] == 20000
        assert entry.details["from_commission"] == 5000
        assert entry.description == "Investment via BALANCE: Quantum Alpha"

    async def test_completed_investment_pays_commission(self, service, accounts, db) -> None:
        await service.open_position(db, "investor", "Quantum Alpha", 20000, FundingMethod.BALANCE)
        assert accounts.accounts["sponsor"].commission_balance == 2000

    async def test_pix_funding_no_debit(self, service, accounts, db) -> None:
        result = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.PIX
        )
        assert result.charged_cents == 0
        assert accounts.accounts["investor"].total_balance == 50000

    async def test_crypto_funding_is_pending(self, service, accounts, journal, db) -> None:
        result = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.CRYPTO
        )
        assert result.entry_status == "pending"
        assert accounts.accounts["sponsor"].commission_balance == 0
        assert journal.events[-1].event_type == LedgerEventType.INVESTMENT_OPENED

    async def test_unknown_offer(self, service, db) -> None:
        with pytest.raises(OfferNotFoundError):
            await service.open_position(db, "investor", "Moon", 10000, FundingMethod.BALANCE)

    async def test_out_of_range(self, service, db) -> None:
        with pytest.raises(AmountOutOfRangeError):
            await service.open_position(
                db, "investor", "Quantum Alpha", 30001, FundingMethod.BALANCE
            )

    async def test_insufficient_balance_leaves_nothing(self, service, positions, journal, db) -> None:
        with pytest.raises(InsufficientFundsError):
            await service.open_position(
                db, "investor", "Crypto Velocity", 60000, FundingMethod.BALANCE
            )
        assert positions.positions == {}
        assert journal.of_type(EntryType.INVESTMENT) == []

    async def test_suspended_refused(self, service, accounts, db) -> None:
        accounts.accounts["investor"].status = "suspended"
        with pytest.raises(AccountSuspendedError):
            await service.open_position(
                db, "investor", "Quantum Alpha", 10000, FundingMethod.PIX
            )


class TestConfirmPayment:
    async def test_approve_runs_cascade(self, service, accounts, journal, db) -> None:
        opened = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.CRYPTO
        )

        position = await service.confirm_payment(db, opened.journal_entry_id, approved=True)

        assert position.status == "active"
        assert journal.entries[opened.journal_entry_id].status == EntryStatus.COMPLETED
        assert accounts.accounts["sponsor"].commission_balance == 10000

    async def test_reject_closes_without_payout(self, service, accounts, journal, db) -> None:
        opened = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.CRYPTO
        )

        position = await service.confirm_payment(db, opened.journal_entry_id, approved=False)

        assert position.status == "closed"
        assert accounts.accounts["investor"].total_balance == 50000
        assert journal.of_type(EntryType.SELL) == []
        assert accounts.accounts["sponsor"].commission_balance == 0

    async def test_only_once(self, service, db) -> None:
        opened = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.CRYPTO
        )
        await service.confirm_payment(db, opened.journal_entry_id, approved=True)
        with pytest.raises(EntryAlreadyResolvedError):
            await service.confirm_payment(db, opened.journal_entry_id, approved=False)


class TestClosePosition:
    async def test_pays_current_balance_to_main(self, service, accounts, journal, db) -> None:
        opened = await service.open_position(
            db, "investor", "Quantum Alpha", 25000, FundingMethod.BALANCE
        )

        closed = await service.close_position(db, opened.position.id)

        assert closed.status == "closed"
        investor = accounts.accounts["investor"]
        assert (investor.main_balance, investor.commission_balance) == (25000, 25000)
        [sell] = journal.of_type(EntryType.SELL)
        assert sell.reference_type == "POSITION"
        assert sell.reference_id == str(opened.position.id)

    async def test_twice_refused(self, service, db) -> None:
        opened = await service.open_position(
            db, "investor", "Quantum Alpha", 10000, FundingMethod.PIX
        )
        await service.close_position(db, opened.position.id)
        with pytest.raises(PositionAlreadyClosedError):
            await service.close_position(db, opened.position.id)

    async def test_pending_payment_refused(self, service, db) -> None:
        opened = await service.open_position(
            db, "investor", "Crypto Velocity", 100000, FundingMethod.CRYPTO
        )
        with pytest.raises(PositionPaymentPendingError):
            await service.close_position(db, opened.position.id)

    async def test_unknown(self, service, db) -> None:
        with pytest.raises(PositionNotFoundError):
            await service.close_position(db, 404)


class TestListPositions:
    async def test_filter_by_status(self, service, db) -> None:
        first = await service.open_position(
            db, "investor", "Quantum Alpha", 10000, FundingMethod.PIX
        )
        await service.open_position(db, "investor", "Quantum Alpha", 10000, FundingMethod.PIX)
        await service.close_position(db, first.position.id)

        active = await service.list_positions(db, "investor", "active")
        everything = await service.list_positions(db, "investor", None)

        assert active.total == 1
        assert everything.total == 2
        assert (await service.list_positions(db, "sponsor", None)).total == 0
