"""Domain models for iv_maintenance."""

from dataclasses import dataclass
from datetime import datetime

from src.iv_common.datetime_utils import ensure_utc, window_end


@dataclass
class MaintenanceWindow:
    id: int
    start_at: datetime
    duration_minutes: int
    active: bool
    created_by: str | None = None
    created_at: datetime | None = None

    @property
    def end_at(self) -> datetime:
        return window_end(self.start_at, self.duration_minutes)

    def covers(self, now: datetime) -> bool:
        """True when the window is switched on and ``now`` is inside [start, end]."""
        if not self.active:
            return False
        return ensure_utc(self.start_at) <= ensure_utc(now) <= self.end_at
