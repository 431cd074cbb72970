"""DestinationRepository — the user's saved PIX keys and USDT wallets."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.errors import DestinationNotFoundError, InternalError
from src.iv_withdrawal.domain.models import NewPayoutDestination, PayoutDestination

_COLUMNS = "id, account_id, key_type, key, label, network_or_bank, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO payout_destinations (account_id, key_type, key, label, network_or_bank)
    VALUES (:account_id, :key_type, :key, :label, :network_or_bank)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM payout_destinations
    WHERE id = :destination_id
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM payout_destinations
    WHERE account_id = :account_id
    ORDER BY id DESC
""")

# Owner check is part of the WHERE clause: other users' rows look absent
_DELETE_SQL = text("""
    DELETE FROM payout_destinations
    WHERE id = :destination_id AND account_id = :account_id
    RETURNING id
""")


def _row_to_destination(row: object) -> PayoutDestination:
    return PayoutDestination(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        key_type=row.key_type,  # type: ignore[attr-defined]
        key=row.key,  # type: ignore[attr-defined]
        label=row.label,  # type: ignore[attr-defined]
        network_or_bank=row.network_or_bank,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class DestinationRepository:
    async def create_destination(
        self, db: AsyncSession, destination: NewPayoutDestination
    ) -> PayoutDestination:
        result = await db.execute(
            _INSERT_SQL,
            {
                "account_id": destination.account_id,
                "key_type": destination.key_type,
                "key": destination.key,
                "label": destination.label,
                "network_or_bank": destination.network_or_bank,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Destination insert returned no rows — this should never happen")
        return _row_to_destination(row)

    async def get_destination(
        self, db: AsyncSession, destination_id: int
    ) -> PayoutDestination | None:
        result = await db.execute(_GET_SQL, {"destination_id": destination_id})
        row = result.fetchone()
        return _row_to_destination(row) if row else None

    async def list_destinations(
        self, db: AsyncSession, account_id: str
    ) -> list[PayoutDestination]:
        result = await db.execute(_LIST_SQL, {"account_id": account_id})
        return [_row_to_destination(row) for row in result.fetchall()]

    async def delete_destination(
        self, db: AsyncSession, account_id: str, destination_id: int
    ) -> None:
        result = await db.execute(
            _DELETE_SQL, {"destination_id": destination_id, "account_id": account_id}
        )
        if result.fetchone() is None:
            raise DestinationNotFoundError(destination_id)
