"""PositionRepository — investment positions, opened once and closed once."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.iv_common.errors import (
    InternalError,
    PositionAlreadyClosedError,
    PositionNotFoundError,
)
from src.iv_investment.domain.models import NewPosition, Position

_COLUMNS = """
    id, account_id, offer_name, initial_amount, current_balance,
    total_return_bps, daily_return_bps, risk_level, status, funding_method,
    journal_entry_id, created_at, closed_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO positions
        (account_id, offer_name, initial_amount, current_balance,
         risk_level, funding_method, journal_entry_id)
    VALUES
        (:account_id, :offer_name, :amount, :amount,
         :risk_level, :funding_method, :journal_entry_id)
    RETURNING {_COLUMNS}
""")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE id = :position_id
    FOR UPDATE
""")

_GET_BY_ENTRY_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE journal_entry_id = :journal_entry_id
    FOR UPDATE
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE account_id = :account_id
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY id DESC
""")

_CLOSE_SQL = text(f"""
    UPDATE positions
    SET status = 'closed',
        closed_at = NOW()
    WHERE id = :position_id AND status = 'active'
    RETURNING {_COLUMNS}
""")

_EXISTS_SQL = text("SELECT 1 FROM positions WHERE id = :position_id")


def _row_to_position(row: object) -> Position:
    return Position(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        offer_name=row.offer_name,  # type: ignore[attr-defined]
        initial_amount=row.initial_amount,  # type: ignore[attr-defined]
        current_balance=row.current_balance,  # type: ignore[attr-defined]
        total_return_bps=row.total_return_bps,  # type: ignore[attr-defined]
        daily_return_bps=row.daily_return_bps,  # type: ignore[attr-defined]
        risk_level=row.risk_level,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        funding_method=row.funding_method,  # type: ignore[attr-defined]
        journal_entry_id=row.journal_entry_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        closed_at=row.closed_at,  # type: ignore[attr-defined]
    )


class PositionRepository:
    async def create_position(self, db: AsyncSession, position: NewPosition) -> Position:
        result = await db.execute(
            _INSERT_SQL,
            {
                "account_id": position.account_id,
                "offer_name": position.offer_name,
                "amount": position.initial_amount,
                "risk_level": position.risk_level,
                "funding_method": position.funding_method,
                "journal_entry_id": position.journal_entry_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Position insert returned no rows — this should never happen")
        return _row_to_position(row)

    async def get_position_for_update(
        self, db: AsyncSession, position_id: int
    ) -> Position | None:
        result = await db.execute(_GET_FOR_UPDATE_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def get_by_entry_for_update(
        self, db: AsyncSession, journal_entry_id: int
    ) -> Position | None:
        result = await db.execute(
            _GET_BY_ENTRY_FOR_UPDATE_SQL, {"journal_entry_id": journal_entry_id}
        )
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def list_positions(
        self, db: AsyncSession, account_id: str, status: str | None
    ) -> list[Position]:
        result = await db.execute(_LIST_SQL, {"account_id": account_id, "status": status})
        return [_row_to_position(row) for row in result.fetchall()]

    async def close_position(self, db: AsyncSession, position_id: int) -> Position:
        result = await db.execute(_CLOSE_SQL, {"position_id": position_id})
        row = result.fetchone()
        if row is None:
            exists = await db.execute(_EXISTS_SQL, {"position_id": position_id})
            if exists.fetchone() is None:
                raise PositionNotFoundError(position_id)
            raise PositionAlreadyClosedError(position_id)
        return _row_to_position(row)
