"""Repository Protocol for payout destinations."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_withdrawal.domain.models import NewPayoutDestination, PayoutDestination


class DestinationRepositoryProtocol(Protocol):
    async def create_destination(
        self, db: AsyncSession, destination: NewPayoutDestination
    ) -> PayoutDestination: ...

    async def get_destination(
        self, db: AsyncSession, destination_id: int
    ) -> PayoutDestination | None: ...

    async def list_destinations(
        self, db: AsyncSession, account_id: str
    ) -> list[PayoutDestination]: ...

    async def delete_destination(
        self, db: AsyncSession, account_id: str, destination_id: int
    ) -> None: ...
