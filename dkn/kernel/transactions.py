"""
Unit-of-work helper shared by the engines.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.kernel.errors import StoreFailure
from dkn.logging_config import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def unit_of_work(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a multi-step mutation as one transaction.

    Commits when the block exits cleanly. On any error everything written
    inside the block is rolled back; store errors are logged in full and
    re-raised as an opaque StoreFailure.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception(
            "Store failure during %s",
            operation,
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StoreFailure() from exc
    except Exception:
        await session.rollback()
        raise
