"""iv_account REST API — onboarding, balance, deposit, PIN, referrals, deletion.

All endpoints require a bearer token. Onboarding only needs a valid identity
(the account row does not exist yet); deposits go through the ledger gate.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.application.schemas import (
    AccountResponse,
    ChangePinRequest,
    DepositRequest,
    OnboardRequest,
)
from src.iv_account.application.service import AccountApplicationService
from src.iv_account.domain.models import Account
from src.iv_common.database import get_db_session
from src.iv_common.response import ApiResponse, success_response
from src.iv_gateway.auth.dependencies import (
    get_current_account,
    get_identity,
    get_ledger_account,
)
from src.iv_gateway.auth.jwt_handler import Identity

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.post("/onboard", status_code=201)
async def onboard(
    body: OnboardRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.onboard(
        db, identity.account_id, body.full_name, body.pin, body.referral_code
    )
    return success_response(data.model_dump(), request)


@router.get("")
async def get_profile(
    account: Annotated[Account, Depends(get_current_account)],
    request: Request,
) -> ApiResponse:
    return success_response(AccountResponse.from_account(account).model_dump(), request)


@router.get("/balance")
async def get_balance(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, account.id)
    return success_response(data.model_dump(), request)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    account: Annotated[Account, Depends(get_ledger_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, account.id, body.amount_cents, body.method)
    return success_response(data.model_dump(), request)


@router.put("/pin")
async def change_pin(
    body: ChangePinRequest,
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.change_pin(db, account.id, body.current_pin, body.new_pin)
    return success_response({"pin_updated": True}, request)


@router.get("/referrals")
async def list_referrals(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_referrals(db, account.id)
    return success_response(data.model_dump(), request)


@router.delete("")
async def delete_account(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete_account(db, account.id)
    return success_response({"deleted": True, "account_id": account.id}, request)
