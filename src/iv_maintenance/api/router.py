"""Public maintenance status endpoint (no authentication)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.database import get_db_session
from src.iv_common.response import ApiResponse, success_response
from src.iv_maintenance.application.service import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

_service = MaintenanceService()


@router.get("/status")
async def maintenance_status(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.status(db)
    return success_response(data.model_dump(), request)
