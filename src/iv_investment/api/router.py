"""iv_investment REST API — offer catalog and the caller's positions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account
from src.iv_common.database import get_db_session
from src.iv_common.enums import PositionStatus
from src.iv_common.response import ApiResponse, success_response
from src.iv_gateway.auth.dependencies import get_current_account, get_ledger_account
from src.iv_investment.application.schemas import OpenPositionRequest
from src.iv_investment.application.service import InvestmentApplicationService

router = APIRouter(prefix="/investments", tags=["investments"])

_service = InvestmentApplicationService()


@router.get("/offers")
async def list_offers(request: Request) -> ApiResponse:
    items = _service.list_offers()
    return success_response({"items": [o.model_dump() for o in items]}, request)


@router.get("")
async def list_positions(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: PositionStatus | None = Query(None, description="Filter by position status"),
) -> ApiResponse:
    data = await _service.list_positions(db, account.id, status.value if status else None)
    return success_response(data.model_dump(), request)


@router.post("", status_code=201)
async def open_position(
    body: OpenPositionRequest,
    account: Annotated[Account, Depends(get_ledger_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.open_position(
        db, account.id, body.offer_name, body.amount_cents, body.funding_method
    )
    return success_response(data.model_dump(), request)
