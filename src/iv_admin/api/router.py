"""Admin REST API — every route requires an administrator account."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.application.service import AccountApplicationService
from src.iv_account.domain.models import Account
from src.iv_admin.application.schemas import (
    AckEventsRequest,
    SetStatusRequest,
    UpdateAccountRequest,
)
from src.iv_admin.application.service import AdminService
from src.iv_common.database import get_db_session
from src.iv_common.response import ApiResponse, success_response
from src.iv_gateway.auth.dependencies import require_admin
from src.iv_investment.application.schemas import ConfirmPaymentRequest
from src.iv_investment.application.service import InvestmentApplicationService
from src.iv_maintenance.application.schemas import ScheduleMaintenanceRequest
from src.iv_maintenance.application.service import MaintenanceService
from src.iv_withdrawal.application.schemas import ResolveWithdrawalRequest
from src.iv_withdrawal.application.service import WithdrawalApplicationService

router = APIRouter(prefix="/admin", tags=["admin"])

_service = AdminService()
_accounts = AccountApplicationService()
_withdrawals = WithdrawalApplicationService()
_investments = InvestmentApplicationService()
_maintenance = MaintenanceService()

AdminAccount = Annotated[Account, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.get("/accounts")
async def list_accounts(
    admin: AdminAccount,
    db: DbSession,
    request: Request,
    q: str | None = Query(None, max_length=255, description="Name substring or exact account id"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_accounts(db, q, cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/accounts/{account_id}")
async def get_account(
    account_id: str, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.get_account(db, account_id)
    return success_response(data.model_dump(), request)


@router.patch("/accounts/{account_id}")
async def update_account(
    account_id: str,
    body: UpdateAccountRequest,
    admin: AdminAccount,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_account(
        db,
        account_id,
        admin.id,
        is_voucher=body.is_voucher,
        is_admin=body.is_admin,
        full_name=body.full_name,
        main_balance=body.main_balance_cents,
        commission_balance=body.commission_balance_cents,
    )
    return success_response(data.model_dump(), request)


@router.delete("/accounts/{account_id}")
async def delete_account(
    account_id: str, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    await _accounts.delete_account(db, account_id, deleted_by=admin.id)
    return success_response({"deleted": True, "account_id": account_id}, request)


@router.put("/accounts/{account_id}/status")
async def set_account_status(
    account_id: str,
    body: SetStatusRequest,
    admin: AdminAccount,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.set_status(db, account_id, body.status, body.reason, admin.id)
    return success_response(data.model_dump(), request)


@router.get("/stats")
async def get_stats(admin: AdminAccount, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.get_stats(db)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


@router.get("/withdrawals/pending")
async def list_pending_withdrawals(
    admin: AdminAccount,
    db: DbSession,
    request: Request,
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    items = await _withdrawals.list_pending(db, limit)
    return success_response({"items": [w.model_dump() for w in items]}, request)


@router.get("/withdrawals/{entry_id}")
async def get_withdrawal(
    entry_id: int, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    data = await _withdrawals.get_withdrawal(db, entry_id)
    return success_response(data.model_dump(), request)


@router.post("/withdrawals/{entry_id}/resolve")
async def resolve_withdrawal(
    entry_id: int,
    body: ResolveWithdrawalRequest,
    admin: AdminAccount,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _withdrawals.resolve(db, entry_id, body.approved, admin.id)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


@router.post("/investments/{entry_id}/confirm")
async def confirm_investment_payment(
    entry_id: int,
    body: ConfirmPaymentRequest,
    admin: AdminAccount,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _investments.confirm_payment(db, entry_id, body.approved)
    return success_response(data.model_dump(), request)


@router.post("/positions/{position_id}/close")
async def close_position(
    position_id: int, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    data = await _investments.close_position(db, position_id)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


@router.post("/maintenance", status_code=201)
async def schedule_maintenance(
    body: ScheduleMaintenanceRequest,
    admin: AdminAccount,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _maintenance.schedule(db, admin.id, body.start_at, body.duration_minutes)
    return success_response(data.model_dump(), request)


@router.get("/maintenance")
async def list_maintenance(
    admin: AdminAccount,
    db: DbSession,
    request: Request,
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    items = await _maintenance.list_windows(db, limit)
    return success_response({"items": [w.model_dump() for w in items]}, request)


@router.delete("/maintenance/{window_id}")
async def deactivate_maintenance(
    window_id: int, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    data = await _maintenance.deactivate(db, window_id)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Event outbox
# ---------------------------------------------------------------------------


@router.get("/events")
async def list_events(
    admin: AdminAccount,
    db: DbSession,
    request: Request,
    after_id: int | None = Query(None, description="Return events with id greater than this"),
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    items = await _service.list_events(db, after_id, limit)
    return success_response({"items": [e.model_dump() for e in items]}, request)


@router.post("/events/ack")
async def ack_events(
    body: AckEventsRequest, admin: AdminAccount, db: DbSession, request: Request
) -> ApiResponse:
    count = await _service.ack_events(db, body.event_ids)
    return success_response({"acknowledged": count}, request)
