"""Tests for the commission cascader — rates, one hop, idempotency, bucket."""

from unittest.mock import AsyncMock

from src.iv_commission.domain.cascader import CommissionCascader
from src.iv_commission.domain.rates import (
    FIRST_QUALIFYING_RATE_BPS,
    REPEAT_QUALIFYING_RATE_BPS,
    commission_for,
)
from src.iv_common.enums import EntryStatus, EntryType, LedgerEventType, ReferenceType
from src.iv_journal.domain.models import NewJournalEntry
from tests.fakes import FakeAccountRepository, FakeJournalRepository, make_account


async def _completed(journal: FakeJournalRepository, account_id: str, amount: int,
                     entry_type: EntryType = EntryType.DEPOSIT):
    return await journal.append(
        None,
        NewJournalEntry(
            account_id=account_id,
            entry_type=entry_type,
            amount=amount,
            asset="BRL",
            status=EntryStatus.COMPLETED,
        ),
    )


def _setup() -> tuple[FakeAccountRepository, FakeJournalRepository, CommissionCascader]:
    accounts = FakeAccountRepository(
        make_account("sponsor", main=0),
        make_account("investor", main=0, referred_by="sponsor"),
        make_account("loner", main=0),
    )
    journal = FakeJournalRepository()
    return accounts, journal, CommissionCascader(accounts, journal)


class TestRates:
    def test_first_is_ten_percent(self) -> None:
        assert commission_for(10000, is_first=True) == (FIRST_QUALIFYING_RATE_BPS, 1000)

    def test_repeat_is_three_percent(self) -> None:
        assert commission_for(20000, is_first=False) == (REPEAT_QUALIFYING_RATE_BPS, 600)


class TestCascade:
    async def test_first_deposit_pays_ten_percent_to_commission_bucket(self) -> None:
        accounts, journal, cascader = _setup()
        source = await _completed(journal, "investor", 10000)

        entry = await cascader.on_entry_completed(None, source)

        assert entry is not None
        assert entry.amount == 1000
        assert entry.entry_type == EntryType.COMMISSION
        assert entry.account_id == "sponsor"
        assert entry.reference_type == ReferenceType.JOURNAL
        assert entry.reference_id == str(source.id)
        assert entry.description == "10% commission (Deposit)"
        sponsor = accounts.accounts["sponsor"]
        assert sponsor.commission_balance == 1000
        assert sponsor.main_balance == 0

    async def test_second_deposit_pays_three_percent(self) -> None:
        accounts, journal, cascader = _setup()
        first = await _completed(journal, "investor", 10000)
        await cascader.on_entry_completed(None, first)
        second = await _completed(journal, "investor", 20000)

        entry = await cascader.on_entry_completed(None, second)

        assert entry is not None
        assert entry.amount == 600
        assert accounts.accounts["sponsor"].commission_balance == 1600

    async def test_investment_after_deposit_is_repeat(self) -> None:
        accounts, journal, cascader = _setup()
        await cascader.on_entry_completed(None, await _completed(journal, "investor", 10000))
        invest = await _completed(journal, "investor", 30000, EntryType.INVESTMENT)

        entry = await cascader.on_entry_completed(None, invest)

        assert entry is not None
        assert entry.amount == 900
        assert entry.description == "3% commission (Investment)"

    async def test_no_referrer_is_noop(self) -> None:
        accounts, journal, cascader = _setup()
        source = await _completed(journal, "loner", 10000)

        assert await cascader.on_entry_completed(None, source) is None
        assert journal.of_type(EntryType.COMMISSION) == []

    async def test_pending_entry_is_noop(self) -> None:
        accounts, journal, cascader = _setup()
        pending = await journal.append(
            None,
            NewJournalEntry("investor", EntryType.INVESTMENT, 50000, "BRL", EntryStatus.PENDING),
        )

        assert await cascader.on_entry_completed(None, pending) is None
        assert accounts.accounts["sponsor"].commission_balance == 0

    async def test_commission_never_cascades(self) -> None:
        accounts, journal, cascader = _setup()
        # sponsor is itself referred by someone
        accounts.add(make_account("grand", main=0))
        accounts.accounts["sponsor"].referred_by = "grand"
        commission = await cascader.on_entry_completed(
            None, await _completed(journal, "investor", 10000)
        )

        assert commission is not None
        assert await cascader.on_entry_completed(None, commission) is None
        assert accounts.accounts["grand"].commission_balance == 0

    async def test_idempotent_per_source_entry(self) -> None:
        accounts, journal, cascader = _setup()
        source = await _completed(journal, "investor", 10000)

        first = await cascader.on_entry_completed(None, source)
        again = await cascader.on_entry_completed(None, source)

        assert first is not None and again is not None
        assert again.id == first.id
        assert len(journal.of_type(EntryType.COMMISSION)) == 1
        assert accounts.accounts["sponsor"].commission_balance == 1000

    async def test_zero_commission_skipped(self) -> None:
        accounts, journal, cascader = _setup()
        source = await _completed(journal, "investor", 9)

        assert await cascader.on_entry_completed(None, source) is None
        assert accounts.accounts["sponsor"].commission_balance == 0

    async def test_writes_outbox_event(self) -> None:
        accounts, journal, cascader = _setup()
        await cascader.on_entry_completed(None, await _completed(journal, "investor", 10000))

        assert [e.event_type for e in journal.events] == [LedgerEventType.COMMISSION_CREDITED]
        assert journal.events[0].account_id == "sponsor"
        assert journal.events[0].payload["amount"] == 1000

    async def test_locks_source_account(self) -> None:
        accounts = AsyncMock()
        accounts.get_account_for_update.return_value = None
        journal = AsyncMock()
        cascader = CommissionCascader(accounts, journal)
        source = await _completed(FakeJournalRepository(), "investor", 10000)

        assert await cascader.on_entry_completed(None, source) is None
        accounts.get_account_for_update.assert_awaited_once_with(None, "investor")
        journal.count_qualifying.assert_not_awaited()
