"""Pydantic schemas for iv_maintenance API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.iv_maintenance.domain.models import MaintenanceWindow


class ScheduleMaintenanceRequest(BaseModel):
    start_at: datetime = Field(..., description="Window start (ISO8601; naive values are UTC)")
    duration_minutes: int = Field(60, gt=0, le=7 * 24 * 60)


class MaintenanceWindowItem(BaseModel):
    id: int
    start_at: str
    end_at: str
    duration_minutes: int
    active: bool
    created_by: str | None

    @classmethod
    def from_window(cls, w: MaintenanceWindow) -> "MaintenanceWindowItem":
        return cls(
            id=w.id,
            start_at=w.start_at.isoformat(),
            end_at=w.end_at.isoformat(),
            duration_minutes=w.duration_minutes,
            active=w.active,
            created_by=w.created_by,
        )


class MaintenanceStatusResponse(BaseModel):
    under_maintenance: bool
    ends_at: str | None
