"""Referral commission rates (basis points)."""

from src.iv_common.cents import calculate_commission

FIRST_QUALIFYING_RATE_BPS = 1000   # 10 % on the referred account's first deposit/investment
REPEAT_QUALIFYING_RATE_BPS = 300   # 3 % on every later one


def commission_rate_bps(is_first: bool) -> int:
    return FIRST_QUALIFYING_RATE_BPS if is_first else REPEAT_QUALIFYING_RATE_BPS


def commission_for(amount: int, is_first: bool) -> tuple[int, int]:
    """Return (rate_bps, commission_cents) for a qualifying amount."""
    rate = commission_rate_bps(is_first)
    return rate, calculate_commission(amount, rate)
