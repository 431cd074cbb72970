"""SQLAlchemy ORM model for iv_investment.

Maps to the table created by Alembic migration 003_create_positions.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.iv_common.database import Base


class PositionORM(Base):
    __tablename__ = "positions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    offer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    initial_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    current_balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_return_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_return_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    risk_level: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="active")
    funding_method: Mapped[str] = mapped_column(String(10), nullable=False)
    journal_entry_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
