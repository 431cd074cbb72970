"""MaintenanceService — the access lock consulted before any ledger mutation."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_account.domain.models import Account
from src.iv_common.datetime_utils import ensure_utc, utc_now
from src.iv_common.errors import MaintenanceError
from src.iv_common.unit_of_work import run_in_transaction
from src.iv_maintenance.application.schemas import (
    MaintenanceStatusResponse,
    MaintenanceWindowItem,
)
from src.iv_maintenance.domain.models import MaintenanceWindow
from src.iv_maintenance.domain.repository import MaintenanceRepositoryProtocol
from src.iv_maintenance.infrastructure.persistence import MaintenanceRepository

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(self, repo: MaintenanceRepositoryProtocol | None = None) -> None:
        self._repo: MaintenanceRepositoryProtocol = repo or MaintenanceRepository()

    async def current_window(
        self, db: AsyncSession, now: datetime | None = None
    ) -> MaintenanceWindow | None:
        """The covering window that ends last, or None when the platform is open."""
        moment = ensure_utc(now) if now else utc_now()
        windows = [w for w in await self._repo.list_covering(db, moment) if w.covers(moment)]
        if not windows:
            return None
        return max(windows, key=lambda w: w.end_at)

    async def ensure_open(
        self, db: AsyncSession, account: Account, now: datetime | None = None
    ) -> None:
        """Refuse ledger-affecting calls during maintenance; admins bypass."""
        if account.is_admin:
            return
        window = await self.current_window(db, now)
        if window is not None:
            logger.warning(
                "Maintenance gate refused account=%s window=%d", account.id, window.id
            )
            raise MaintenanceError(window.end_at.isoformat())

    async def status(self, db: AsyncSession) -> MaintenanceStatusResponse:
        window = await self.current_window(db)
        return MaintenanceStatusResponse(
            under_maintenance=window is not None,
            ends_at=window.end_at.isoformat() if window else None,
        )

    async def schedule(
        self, db: AsyncSession, admin_id: str, start_at: datetime, duration_minutes: int
    ) -> MaintenanceWindowItem:
        window = await run_in_transaction(
            db,
            lambda: self._repo.create_window(
                db, ensure_utc(start_at), duration_minutes, admin_id
            ),
        )
        logger.info(
            "Maintenance scheduled id=%d start=%s duration=%dmin by=%s",
            window.id,
            window.start_at.isoformat(),
            duration_minutes,
            admin_id,
        )
        return MaintenanceWindowItem.from_window(window)

    async def deactivate(self, db: AsyncSession, window_id: int) -> MaintenanceWindowItem:
        window = await run_in_transaction(db, lambda: self._repo.deactivate(db, window_id))
        logger.info("Maintenance window %d deactivated", window_id)
        return MaintenanceWindowItem.from_window(window)

    async def list_windows(self, db: AsyncSession, limit: int) -> list[MaintenanceWindowItem]:
        windows = await self._repo.list_windows(db, limit)
        return [MaintenanceWindowItem.from_window(w) for w in windows]
