"""Account-level business rules shared by every ledger-affecting operation."""

import re
import secrets

from src.iv_account.domain.models import Account
from src.iv_common.enums import AccountStatus
from src.iv_common.errors import (
    AccountBannedError,
    AccountSuspendedError,
    InvalidPinFormatError,
)

PIN_LENGTH = 6
REFERRAL_CODE_PREFIX_LEN = 6
REFERRAL_CODE_SUFFIX_DIGITS = 4
REFERRAL_CODE_FALLBACK_PREFIX = "INVEST"

_PIN_RE = re.compile(rf"[0-9]{{{PIN_LENGTH}}}")


def ensure_active(account: Account) -> None:
    """Refuse any ledger mutation for suspended or banned accounts.

    Called at the top of every ledger-affecting operation with a freshly read
    row; never cached for the session.
    """
    if account.status == AccountStatus.BANNED:
        raise AccountBannedError(account.status_reason)
    if account.status == AccountStatus.SUSPENDED:
        raise AccountSuspendedError(account.status_reason)


def validate_pin_format(pin: str) -> None:
    if not _PIN_RE.fullmatch(pin):
        raise InvalidPinFormatError(PIN_LENGTH)


def generate_referral_code(full_name: str | None) -> str:
    """Name-derived prefix plus random digits, e.g. 'MARIAS4821'."""
    cleaned = re.sub(r"[^A-Za-z0-9]", "", full_name or "").upper()
    prefix = cleaned[:REFERRAL_CODE_PREFIX_LEN] or REFERRAL_CODE_FALLBACK_PREFIX
    suffix = "".join(
        secrets.choice("0123456789") for _ in range(REFERRAL_CODE_SUFFIX_DIGITS)
    )
    return f"{prefix}{suffix}"
