"""iv_withdrawal REST API — payout destinations and the withdrawal flow.

Destinations are managed without the ledger gate (no money moves); quote and
request go through ``get_ledger_account`` so maintenance, status and e-mail
checks apply.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account
from src.iv_common.database import get_db_session
from src.iv_common.response import ApiResponse, success_response
from src.iv_gateway.auth.dependencies import get_current_account, get_ledger_account
from src.iv_withdrawal.application.schemas import (
    CreateDestinationRequest,
    QuoteRequest,
    WithdrawalRequest,
)
from src.iv_withdrawal.application.service import WithdrawalApplicationService

destinations_router = APIRouter(prefix="/payout-destinations", tags=["payout-destinations"])
router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])

_service = WithdrawalApplicationService()


@destinations_router.get("")
async def list_destinations(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    items = await _service.list_destinations(db, account.id)
    return success_response({"items": [d.model_dump() for d in items]}, request)


@destinations_router.post("", status_code=201)
async def add_destination(
    body: CreateDestinationRequest,
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.add_destination(
        db, account.id, body.key_type, body.key, body.label, body.network_or_bank
    )
    return success_response(data.model_dump(), request)


@destinations_router.delete("/{destination_id}")
async def remove_destination(
    destination_id: int,
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.remove_destination(db, account.id, destination_id)
    return success_response({"deleted": True, "destination_id": destination_id}, request)


@router.post("/quote")
async def quote_withdrawal(
    body: QuoteRequest,
    account: Annotated[Account, Depends(get_ledger_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.quote(db, account.id, body.amount_cents)
    return success_response(data.model_dump(), request)


@router.post("", status_code=201)
async def request_withdrawal(
    body: WithdrawalRequest,
    account: Annotated[Account, Depends(get_ledger_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.request_withdrawal(
        db, account.id, body.amount_cents, body.destination_id, body.pin
    )
    return success_response(data.model_dump(), request)
