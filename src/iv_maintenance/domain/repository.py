from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_maintenance.domain.models import MaintenanceWindow


class MaintenanceRepositoryProtocol(Protocol):
    async def list_covering(
        self, db: AsyncSession, now: datetime
    ) -> list[MaintenanceWindow]: ...

    async def list_windows(self, db: AsyncSession, limit: int) -> list[MaintenanceWindow]: ...

    async def create_window(
        self, db: AsyncSession, start_at: datetime, duration_minutes: int, created_by: str
    ) -> MaintenanceWindow: ...

    async def deactivate(self, db: AsyncSession, window_id: int) -> MaintenanceWindow: ...
