"""Tests for the withdrawal step machine and its pure helpers."""

import pytest

from src.iv_common.enums import WithdrawalStep
from src.iv_common.errors import (
    BelowMinimumError,
    DestinationNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidDestinationError,
    VoucherWithdrawalError,
    WithdrawalStepError,
    WrongPinError,
)
from src.iv_withdrawal.domain.flow import (
    MIN_WITHDRAWAL_CENTS,
    WithdrawalFlow,
    quote,
    step_for_status,
    validate_destination_key,
)
from src.iv_withdrawal.domain.models import PayoutDestination
from tests.fakes import make_account


def _destination(account_id: str = "acc-1") -> PayoutDestination:
    return PayoutDestination(1, account_id, "cpf", "123.456.789-00", "My PIX key")


class TestQuote:
    def test_fee_is_seven_percent(self) -> None:
        q = quote(100000, 200000)
        assert (q.fee, q.net) == (7000, 93000)

    def test_fee_rounds_up(self) -> None:
        q = quote(5001, 10000)
        assert q.fee == 351
        assert q.fee + q.net == 5001

    def test_minimum(self) -> None:
        quote(MIN_WITHDRAWAL_CENTS, MIN_WITHDRAWAL_CENTS)
        with pytest.raises(BelowMinimumError):
            quote(MIN_WITHDRAWAL_CENTS - 1, 100000)

    def test_over_available(self) -> None:
        with pytest.raises(InsufficientFundsError):
            quote(10001, 10000)

    def test_over_ceiling_is_invalid_amount(self) -> None:
        with pytest.raises(InvalidAmountError):
            quote(2**70, 10**15)


class TestDestinationKey:
    def test_pix_any_non_empty(self) -> None:
        validate_destination_key("email", "ana@example.com", None)

    def test_empty_key(self) -> None:
        with pytest.raises(InvalidDestinationError):
            validate_destination_key("cpf", "   ", None)

    @pytest.mark.parametrize(
        ("network", "key"), [("BEP20", "0xabc123"), ("trc20", "TXyz987")]
    )
    def test_usdt_valid(self, network: str, key: str) -> None:
        validate_destination_key("usdt", key, network)

    def test_usdt_wrong_prefix(self) -> None:
        with pytest.raises(InvalidDestinationError):
            validate_destination_key("usdt", "TXyz987", "BEP20")

    def test_usdt_unknown_network(self) -> None:
        with pytest.raises(InvalidDestinationError):
            validate_destination_key("usdt", "0xabc", "ERC20")


class TestWithdrawalFlow:
    def test_happy_path_steps(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000))
        assert flow.step == WithdrawalStep.AMOUNT_ENTRY

        flow.enter_amount(60000)
        assert flow.step == WithdrawalStep.DESTINATION_SELECTION

        flow.select_destination(_destination())
        assert flow.step == WithdrawalStep.PIN_CONFIRMATION

        flow.confirm_pin(True)

    def test_voucher_never_leaves_amount_entry(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000, is_voucher=True))
        with pytest.raises(VoucherWithdrawalError):
            flow.enter_amount(60000)
        assert flow.step == WithdrawalStep.AMOUNT_ENTRY

    def test_uses_total_balance(self) -> None:
        flow = WithdrawalFlow(make_account(main=3000, commission=3000))
        assert flow.enter_amount(6000).available == 6000

    def test_cannot_skip_to_destination(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000))
        with pytest.raises(WithdrawalStepError):
            flow.select_destination(_destination())

    def test_cannot_confirm_before_destination(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000))
        flow.enter_amount(60000)
        with pytest.raises(WithdrawalStepError):
            flow.confirm_pin(True)

    def test_foreign_destination(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000))
        flow.enter_amount(60000)
        with pytest.raises(DestinationNotFoundError):
            flow.select_destination(_destination("someone-else"))

    def test_wrong_pin(self) -> None:
        flow = WithdrawalFlow(make_account(main=100000))
        flow.enter_amount(60000)
        flow.select_destination(_destination())
        with pytest.raises(WrongPinError):
            flow.confirm_pin(False)


class TestStepForStatus:
    def test_mapping(self) -> None:
        assert step_for_status("pending") == WithdrawalStep.PIN_CONFIRMATION
        assert step_for_status("completed") == WithdrawalStep.COMPLETED
        assert step_for_status("rejected") == WithdrawalStep.REJECTED
