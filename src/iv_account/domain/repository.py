"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock (or the in-memory fake in tests/fakes.py) that
conforms to this Protocol. Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account, DebitResult, Referral
from src.iv_common.enums import Bucket


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def get_account_for_update(
        self, db: AsyncSession, account_id: str
    ) -> Account | None: ...

    async def get_by_referral_code(
        self, db: AsyncSession, referral_code: str
    ) -> Account | None: ...

    async def create_account(
        self,
        db: AsyncSession,
        account_id: str,
        pin_hash: str,
        referral_code: str,
        referred_by: str | None,
        full_name: str | None,
    ) -> Account | None: ...

    async def credit(
        self, db: AsyncSession, account_id: str, amount: int, bucket: Bucket
    ) -> Account: ...

    async def debit(self, db: AsyncSession, account_id: str, amount: int) -> DebitResult: ...

    async def restore(
        self, db: AsyncSession, account_id: str, from_main: int, from_commission: int
    ) -> Account: ...

    async def set_status(
        self, db: AsyncSession, account_id: str, status: str, reason: str | None
    ) -> Account: ...

    async def update_profile(
        self,
        db: AsyncSession,
        account_id: str,
        is_voucher: bool | None,
        is_admin: bool | None,
        full_name: str | None,
    ) -> Account: ...

    async def set_balances(
        self, db: AsyncSession, account_id: str, main_balance: int, commission_balance: int
    ) -> Account: ...

    async def update_pin(self, db: AsyncSession, account_id: str, pin_hash: str) -> Account: ...

    async def list_referrals(self, db: AsyncSession, referrer_id: str) -> list[Referral]: ...

    async def list_accounts(
        self,
        db: AsyncSession,
        search: str | None,
        after: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Account]: ...

    async def delete_account(self, db: AsyncSession, account_id: str) -> bool: ...
