"""Global enums — must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class Bucket(str, Enum):
    """Sub-balance of an account; total balance is MAIN + COMMISSION."""
    MAIN = "main"
    COMMISSION = "commission"


class EntryType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"
    COMMISSION = "commission"
    PROFIT = "profit"
    TRANSFER_IN = "transfer_in"
    SELL = "sell"


# Entry types shown as money coming in (the rest are money going out)
INCOMING_ENTRY_TYPES = frozenset(
    {EntryType.DEPOSIT, EntryType.PROFIT, EntryType.TRANSFER_IN, EntryType.SELL, EntryType.COMMISSION}
)

# Completed entries of these types qualify for referral commission
QUALIFYING_ENTRY_TYPES = (EntryType.DEPOSIT, EntryType.INVESTMENT)


class EntryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PositionStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class FundingMethod(str, Enum):
    BALANCE = "balance"
    PIX = "pix"
    CRYPTO = "crypto"


class DepositMethod(str, Enum):
    PIX = "pix"
    CRYPTO = "crypto"


class DestinationKeyType(str, Enum):
    CPF = "cpf"
    EMAIL = "email"
    PHONE = "phone"
    RANDOM = "random"
    USDT = "usdt"


class WithdrawalStep(str, Enum):
    AMOUNT_ENTRY = "AMOUNT_ENTRY"
    DESTINATION_SELECTION = "DESTINATION_SELECTION"
    PIN_CONFIRMATION = "PIN_CONFIRMATION"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class LedgerEventType(str, Enum):
    COMMISSION_CREDITED = "COMMISSION_CREDITED"
    WITHDRAWAL_REQUESTED = "WITHDRAWAL_REQUESTED"
    WITHDRAWAL_RESOLVED = "WITHDRAWAL_RESOLVED"
    INVESTMENT_OPENED = "INVESTMENT_OPENED"
    ACCOUNT_STATUS_CHANGED = "ACCOUNT_STATUS_CHANGED"


class ReferenceType(str, Enum):
    JOURNAL = "JOURNAL"
    POSITION = "POSITION"
    DESTINATION = "DESTINATION"
