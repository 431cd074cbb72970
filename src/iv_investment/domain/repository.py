"""Repository Protocol for investment positions."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_investment.domain.models import NewPosition, Position


class PositionRepositoryProtocol(Protocol):
    async def create_position(self, db: AsyncSession, position: NewPosition) -> Position: ...

    async def get_position_for_update(
        self, db: AsyncSession, position_id: int
    ) -> Position | None: ...

    async def get_by_entry_for_update(
        self, db: AsyncSession, journal_entry_id: int
    ) -> Position | None: ...

    async def list_positions(
        self, db: AsyncSession, account_id: str, status: str | None
    ) -> list[Position]: ...

    async def close_position(self, db: AsyncSession, position_id: int) -> Position: ...
