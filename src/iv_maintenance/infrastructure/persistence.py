"""MaintenanceRepository — scheduled access-lock windows."""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.errors import InternalError, MaintenanceWindowNotFoundError
from src.iv_maintenance.domain.models import MaintenanceWindow

_COLUMNS = "id, start_at, duration_minutes, active, created_by, created_at"

_LIST_COVERING_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM maintenance_windows
    WHERE active
      AND start_at <= :now
      AND start_at + make_interval(mins => duration_minutes) >= :now
    ORDER BY start_at DESC
""")

_LIST_WINDOWS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM maintenance_windows
    ORDER BY start_at DESC
    LIMIT :limit
""")

_INSERT_WINDOW_SQL = text(f"""
    INSERT INTO maintenance_windows (start_at, duration_minutes, created_by)
    VALUES (:start_at, :duration_minutes, :created_by)
    RETURNING {_COLUMNS}
""")

_DEACTIVATE_SQL = text(f"""
    UPDATE maintenance_windows
    SET active = FALSE
    WHERE id = :window_id
    RETURNING {_COLUMNS}
""")


def _row_to_window(row: object) -> MaintenanceWindow:
    return MaintenanceWindow(
        id=row.id,  # type: ignore[attr-defined]
        start_at=row.start_at,  # type: ignore[attr-defined]
        duration_minutes=row.duration_minutes,  # type: ignore[attr-defined]
        active=row.active,  # type: ignore[attr-defined]
        created_by=row.created_by,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class MaintenanceRepository:
    async def list_covering(
        self, db: AsyncSession, now: datetime
    ) -> list[MaintenanceWindow]:
        result = await db.execute(_LIST_COVERING_SQL, {"now": now})
        return [_row_to_window(row) for row in result.fetchall()]

    async def list_windows(self, db: AsyncSession, limit: int) -> list[MaintenanceWindow]:
        result = await db.execute(_LIST_WINDOWS_SQL, {"limit": limit})
        return [_row_to_window(row) for row in result.fetchall()]

    async def create_window(
        self, db: AsyncSession, start_at: datetime, duration_minutes: int, created_by: str
    ) -> MaintenanceWindow:
        result = await db.execute(
            _INSERT_WINDOW_SQL,
            {
                "start_at": start_at,
                "duration_minutes": duration_minutes,
                "created_by": created_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Maintenance insert returned no rows — this should never happen")
        return _row_to_window(row)

    async def deactivate(self, db: AsyncSession, window_id: int) -> MaintenanceWindow:
        result = await db.execute(_DEACTIVATE_SQL, {"window_id": window_id})
        row = result.fetchone()
        if row is None:
            raise MaintenanceWindowNotFoundError(window_id)
        return _row_to_window(row)
