"""Unit-of-work runner: one DB transaction per ledger operation, with retries.

Every money-moving application service funnels its repository calls through
``run_in_transaction``. The operation is executed, the session committed, and
on failure the session is rolled back so no partial state survives.

Retry policy:
  - ConflictError (serialization failure / deadlock): retried once.
  - TransientStoreError (connection lost, timeout): retried with exponential
    backoff up to ``settings.STORE_MAX_RETRIES`` times.
  - Data errors (SQLSTATE class 22, values the driver cannot encode): raised
    as StoreValueError, a validation failure, without retry.
  - Everything else (validation, funds, authorization, not found): raised as-is.

The operation callable must be safe to run again from scratch: it re-reads the
authoritative rows on every attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DataError, DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.iv_common.errors import ConflictError, StoreValueError, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATEs: serialization_failure, deadlock_detected
_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})
# SQLSTATE class 22: data_exception (numeric_value_out_of_range, ...)
_DATA_EXCEPTION_CLASS = "22"


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_data_error(exc: DBAPIError) -> bool:
    if isinstance(exc, DataError):
        return True
    sqlstate = _sqlstate(exc)
    if sqlstate is not None and sqlstate.startswith(_DATA_EXCEPTION_CLASS):
        return True
    # asyncpg reports client-side encoding failures as ValueError subclasses
    orig = exc.orig
    return isinstance(orig, ValueError) or isinstance(getattr(orig, "__cause__", None), ValueError)


def translate_store_error(exc: Exception) -> Exception:
    """Map driver/pool exceptions onto the ledger error taxonomy.

    Returns the original exception when it has no counterpart in the taxonomy.
    """
    if isinstance(exc, PoolTimeoutError | asyncio.TimeoutError | ConnectionError):
        return TransientStoreError()
    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in _CONFLICT_SQLSTATES:
            return ConflictError()
        if _is_data_error(exc):
            return StoreValueError()
        if exc.connection_invalidated or isinstance(exc, OperationalError | InterfaceError):
            return TransientStoreError()
    return exc


def backoff_delay(attempt: int) -> float:
    """Exponential backoff: base, 2*base, 4*base, ..."""
    return settings.STORE_RETRY_BASE_DELAY * (2 ** attempt)


async def run_in_transaction(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    max_transient_retries: int | None = None,
) -> T:
    """Run ``operation`` and commit; roll back and retry per the policy above."""
    transient_limit = (
        settings.STORE_MAX_RETRIES if max_transient_retries is None else max_transient_retries
    )
    conflict_retried = False
    transient_attempts = 0

    while True:
        try:
            result = await operation()
            await db.commit()
            return result
        except Exception as raw:
            await db.rollback()
            exc = translate_store_error(raw)
            if isinstance(exc, ConflictError) and not conflict_retried:
                conflict_retried = True
                logger.warning("Conflict on ledger operation, retrying once: %s", raw)
                continue
            if isinstance(exc, TransientStoreError) and transient_attempts < transient_limit:
                delay = backoff_delay(transient_attempts)
                transient_attempts += 1
                logger.warning(
                    "Transient store error (attempt %d/%d), retrying in %.2fs: %s",
                    transient_attempts,
                    transient_limit,
                    delay,
                    raw,
                )
                await asyncio.sleep(delay)
                continue
            if exc is raw:
                raise
            raise exc from raw
