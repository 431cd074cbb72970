"""FastAPI dependencies: identity, current account, admin role, ledger gate.

Usage in any protected router:
    from src.iv_gateway.auth.dependencies import get_ledger_account

    @router.post("/mutate")
    async def mutate(account: Account = Depends(get_ledger_account)):
        ...

``get_ledger_account`` is the single entry point for ledger-affecting
requests: it re-reads the account row (never trusting a cached session),
refuses suspended/banned accounts and unverified e-mails, and consults the
maintenance gate.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account
from src.iv_account.domain.policies import ensure_active
from src.iv_account.infrastructure.persistence import AccountRepository
from src.iv_common.database import get_db_session
from src.iv_common.enums import AccountStatus
from src.iv_common.errors import (
    AccountBannedError,
    AccountNotFoundError,
    AdminRequiredError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
)
from src.iv_gateway.auth.jwt_handler import Identity, decode_identity
from src.iv_maintenance.application.service import MaintenanceService

# tokenUrl points at the identity service's login endpoint (Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_accounts = AccountRepository()
_maintenance = MaintenanceService()


async def get_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    try:
        return decode_identity(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


async def get_current_account(
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Account:
    """Load the caller's account row fresh from the store.

    Raises AccountNotFoundError (404) before onboarding and AccountBannedError
    (403, sign-out) for banned accounts on any request.
    """
    account = await _accounts.get_account(db, identity.account_id)
    if account is None:
        raise AccountNotFoundError(identity.account_id)
    if account.status == AccountStatus.BANNED:
        raise AccountBannedError(account.status_reason)
    return account


async def get_ledger_account(
    identity: Annotated[Identity, Depends(get_identity)],
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Account:
    """Gate for ledger-affecting requests: active status, verified e-mail, maintenance."""
    ensure_active(account)
    if not identity.email_verified:
        raise EmailNotVerifiedError()
    await _maintenance.ensure_open(db, account)
    return account


async def require_admin(
    account: Annotated[Account, Depends(get_current_account)],
) -> Account:
    """Verify the caller is an administrator (role re-read on every request)."""
    if not account.is_admin:
        raise AdminRequiredError()
    return account
