"""Integer arithmetic utilities for cents-based balances.

All amounts, balances, fees and commissions use int (cents). No float, no Decimal.
Rates are expressed in basis points (1 bp = 0.01 %).
"""

from src.iv_common.errors import InvalidAmountError

_BPS = 10000

# R$ 10.000.000.000,00; balance sums stay far inside BIGINT.
MAX_AMOUNT_CENTS = 1_000_000_000_000


def validate_amount(amount: int) -> None:
    """Validate that an amount is a positive number of cents no larger than MAX_AMOUNT_CENTS."""
    if amount <= 0 or amount > MAX_AMOUNT_CENTS:
        raise InvalidAmountError(amount, MAX_AMOUNT_CENTS)


def cents_to_display(cents: int, currency: str = "BRL") -> str:
    """Convert cents to display string: 650000 -> 'R$ 6,500.00', -1200 -> '-R$ 12.00'."""
    symbol = "R$ " if currency == "BRL" else "$"
    if cents < 0:
        abs_cents = -cents
        return f"-{symbol}{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{symbol}{cents // 100:,}.{cents % 100:02d}"


def calculate_fee(amount: int, fee_rate_bps: int) -> int:
    """Calculate fee with ceiling division (platform never loses).

    fee = ceil(amount * fee_rate_bps / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if amount == 0 or fee_rate_bps == 0:
        return 0
    return (amount * fee_rate_bps + _BPS - 1) // _BPS


def calculate_commission(amount: int, rate_bps: int) -> int:
    """Calculate commission with floor division (platform never over-pays)."""
    return (amount * rate_bps) // _BPS


def bps_to_percent(rate_bps: int) -> str:
    """1000 -> '10%', 350 -> '3.5%'."""
    whole, frac = divmod(rate_bps, 100)
    if frac == 0:
        return f"{whole}%"
    return f"{whole}.{frac:02d}".rstrip("0") + "%"
