import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from config.settings import settings
from src.iv_common.database import Base

# Register every table on Base.metadata
from src.iv_account.infrastructure import db_models as _account_models  # noqa: F401
from src.iv_investment.infrastructure import db_models as _investment_models  # noqa: F401
from src.iv_journal.infrastructure import db_models as _journal_models  # noqa: F401
from src.iv_maintenance.infrastructure import db_models as _maintenance_models  # noqa: F401
from src.iv_withdrawal.infrastructure import db_models as _withdrawal_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Migrations are hand-written raw SQL; metadata is only used by `alembic check`
# to report drift between the ORM mirrors and the live schema.
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):  # type: ignore[no-untyped-def]
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in 'online' mode with async engine."""
    connectable = create_async_engine(
        settings.DATABASE_URL,
        connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
