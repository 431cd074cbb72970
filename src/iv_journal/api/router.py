"""iv_journal REST API — the caller's transaction history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account
from src.iv_common.database import get_db_session
from src.iv_common.enums import EntryStatus, EntryType
from src.iv_common.response import ApiResponse, success_response
from src.iv_gateway.auth.dependencies import get_current_account
from src.iv_journal.application.service import JournalApplicationService

router = APIRouter(prefix="/journal", tags=["journal"])

_service = JournalApplicationService()


@router.get("")
async def list_journal(
    account: Annotated[Account, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: EntryType | None = Query(None, description="Filter by entry type"),
    status: EntryStatus | None = Query(None, description="Filter by entry status"),
) -> ApiResponse:
    data = await _service.list_entries(
        db,
        account.id,
        cursor,
        limit,
        entry_type.value if entry_type else None,
        status.value if status else None,
    )
    return success_response(data.model_dump(), request)
