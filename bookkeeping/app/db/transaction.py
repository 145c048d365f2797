"""
Transaction boundary for ledger mutations.

Every posting, reversal or recompute runs as one unit of work: the wrapped
coroutine only flushes, and the wrapper commits on success or rolls back on
any failure (including exceeding the time budget).
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeping.app.core.config import settings
from bookkeeping.app.core.exceptions import TransactionTimeoutError

logger = logging.getLogger(__name__)


def transactional(operation: str, timeout: Optional[float] = None):
    """
    Decorator factory for atomic, time-bounded ledger operations.

    Usage:
        @transactional("sale.update")
        async def update_sale(db: AsyncSession, sale_id: int, ...):
            ...

    The decorated function must take the session as its first argument and
    must not commit itself.

    Args:
        operation: Name used in logs and timeout errors
        timeout: Seconds before rollback (defaults to settings.ledger_timeout_seconds)
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(db: AsyncSession, *args, **kwargs):
            limit = timeout if timeout is not None else settings.ledger_timeout_seconds
            try:
                result = await asyncio.wait_for(func(db, *args, **kwargs), timeout=limit)
                await db.commit()
            except asyncio.TimeoutError:
                await db.rollback()
                logger.warning("%s exceeded %ss, rolled back", operation, limit)
                raise TransactionTimeoutError(operation, limit)
            except Exception as exc:
                await db.rollback()
                logger.warning("%s rolled back: %s", operation, exc)
                raise
            return result
        return wrapper
    return decorator
