"""Tests for iv_common.cents — integer arithmetic utilities."""

import pytest

from src.iv_common.cents import (
    MAX_AMOUNT_CENTS,
    bps_to_percent,
    calculate_commission,
    calculate_fee,
    cents_to_display,
    validate_amount,
)
from src.iv_common.errors import InvalidAmountError, ValidationError


class TestValidateAmount:
    def test_positive_ok(self) -> None:
        validate_amount(1)
        validate_amount(10_000_000)
        validate_amount(MAX_AMOUNT_CENTS)

    @pytest.mark.parametrize("amount", [0, -1, -5000, MAX_AMOUNT_CENTS + 1, 2**70])
    def test_out_of_range_raises(self, amount: int) -> None:
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_amount(amount)
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.http_status == 422


class TestCentsToDisplay:
    def test_brl(self) -> None:
        assert cents_to_display(650000) == "R$ 6,500.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "R$ 0.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "R$ 0.01"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-R$ 12.00"

    def test_other_currency(self) -> None:
        assert cents_to_display(1999, "USD") == "$19.99"


class TestCalculateFee:
    def test_withdrawal_fee_exact(self) -> None:
        # 7 % of R$ 1.000,00
        assert calculate_fee(100000, 700) == 7000

    def test_rounds_up(self) -> None:
        # 7 % of 5001 = 350.07 → 351
        assert calculate_fee(5001, 700) == 351

    def test_zero_rate(self) -> None:
        assert calculate_fee(5000, 0) == 0

    def test_zero_amount(self) -> None:
        assert calculate_fee(0, 700) == 0


class TestCalculateCommission:
    def test_first_deposit_rate(self) -> None:
        assert calculate_commission(10000, 1000) == 1000

    def test_repeat_rate(self) -> None:
        assert calculate_commission(20000, 300) == 600

    def test_rounds_down(self) -> None:
        # 3 % of 1099 = 32.97 → 32
        assert calculate_commission(1099, 300) == 32

    def test_tiny_amount_is_zero(self) -> None:
        assert calculate_commission(9, 1000) == 0


class TestBpsToPercent:
    def test_whole(self) -> None:
        assert bps_to_percent(1000) == "10%"
        assert bps_to_percent(300) == "3%"

    def test_fraction(self) -> None:
        assert bps_to_percent(350) == "3.5%"
        assert bps_to_percent(1) == "0.01%"

    def test_zero(self) -> None:
        assert bps_to_percent(0) == "0%"
