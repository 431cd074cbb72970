"""Withdrawal step machine.

    AMOUNT_ENTRY → DESTINATION_SELECTION → PIN_CONFIRMATION → COMPLETED | REJECTED

The user walks the first three steps; COMPLETED / REJECTED are reached only
through the administrator's resolution of the pending journal entry. The
flow object holds no I/O: the service feeds it the freshly loaded account
and destination and persists the outcome.
"""

from dataclasses import dataclass

from src.iv_account.domain.models import Account
from src.iv_common.cents import calculate_fee, validate_amount
from src.iv_common.enums import DestinationKeyType, EntryStatus, WithdrawalStep
from src.iv_common.errors import (
    BelowMinimumError,
    DestinationNotFoundError,
    InsufficientFundsError,
    InvalidDestinationError,
    VoucherWithdrawalError,
    WithdrawalStepError,
    WrongPinError,
)
from src.iv_withdrawal.domain.models import PayoutDestination, WithdrawalQuote

MIN_WITHDRAWAL_CENTS = 5000   # R$ 50,00
WITHDRAWAL_FEE_BPS = 700      # 7 %

USDT_NETWORK_PREFIXES = {"BEP20": "0x", "TRC20": "T"}

_TRANSITIONS: dict[WithdrawalStep, frozenset[WithdrawalStep]] = {
    WithdrawalStep.AMOUNT_ENTRY: frozenset({WithdrawalStep.DESTINATION_SELECTION}),
    WithdrawalStep.DESTINATION_SELECTION: frozenset({WithdrawalStep.PIN_CONFIRMATION}),
    WithdrawalStep.PIN_CONFIRMATION: frozenset(
        {WithdrawalStep.COMPLETED, WithdrawalStep.REJECTED}
    ),
    WithdrawalStep.COMPLETED: frozenset(),
    WithdrawalStep.REJECTED: frozenset(),
}


def quote(amount: int, available: int) -> WithdrawalQuote:
    """Validate the amount and split it into fee and net. fee = ceil(7 %)."""
    validate_amount(amount)
    if amount < MIN_WITHDRAWAL_CENTS:
        raise BelowMinimumError("withdrawal", MIN_WITHDRAWAL_CENTS)
    if amount > available:
        raise InsufficientFundsError(amount, available)
    fee = calculate_fee(amount, WITHDRAWAL_FEE_BPS)
    return WithdrawalQuote(amount=amount, fee=fee, net=amount - fee, available=available)


def validate_destination_key(key_type: str, key: str, network: str | None) -> None:
    if not key.strip():
        raise InvalidDestinationError("key cannot be empty")
    if key_type != DestinationKeyType.USDT:
        return
    prefix = USDT_NETWORK_PREFIXES.get((network or "").upper())
    if prefix is None:
        raise InvalidDestinationError(
            f"USDT network must be one of {', '.join(sorted(USDT_NETWORK_PREFIXES))}"
        )
    if not key.startswith(prefix):
        raise InvalidDestinationError(f"{network} addresses start with '{prefix}'")


@dataclass
class WithdrawalFlow:
    account: Account
    step: WithdrawalStep = WithdrawalStep.AMOUNT_ENTRY
    quote: WithdrawalQuote | None = None
    destination: PayoutDestination | None = None

    def _advance(self, target: WithdrawalStep) -> None:
        if target not in _TRANSITIONS[self.step]:
            raise WithdrawalStepError(self.step.value, target.value)
        self.step = target

    def enter_amount(self, amount: int) -> WithdrawalQuote:
        # Voucher accounts never reach destination selection
        if self.account.is_voucher:
            raise VoucherWithdrawalError()
        self.quote = quote(amount, self.account.total_balance)
        self._advance(WithdrawalStep.DESTINATION_SELECTION)
        return self.quote

    def select_destination(self, destination: PayoutDestination) -> None:
        if self.step != WithdrawalStep.DESTINATION_SELECTION:
            raise WithdrawalStepError(self.step.value, WithdrawalStep.PIN_CONFIRMATION.value)
        if destination.account_id != self.account.id:
            raise DestinationNotFoundError(destination.id)
        self.destination = destination
        self._advance(WithdrawalStep.PIN_CONFIRMATION)

    def confirm_pin(self, pin_ok: bool) -> None:
        if self.step != WithdrawalStep.PIN_CONFIRMATION:
            raise WithdrawalStepError(self.step.value, "debit")
        if not pin_ok:
            raise WrongPinError()


def step_for_status(entry_status: str) -> WithdrawalStep:
    """Where a persisted withdrawal sits in the flow, from its journal status."""
    if entry_status == EntryStatus.COMPLETED:
        return WithdrawalStep.COMPLETED
    if entry_status == EntryStatus.REJECTED:
        return WithdrawalStep.REJECTED
    return WithdrawalStep.PIN_CONFIRMATION
