"""Commit-or-rollback helper shared by the services."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InternalError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(
    session: AsyncSession,
    action: str,
    passthrough: tuple[type[BaseException], ...] = (),
) -> AsyncIterator[None]:
    """Run the block as one database transaction.

    The session is committed when the block finishes and rolled back on any
    exception. Store failures surface as InternalError unless their type is
    listed in `passthrough`, in which case they are re-raised unchanged.
    """

    try:
        yield
        await session.commit()
    except passthrough:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("%s failed, rolled back", action)
        raise InternalError(f"{action} failed") from exc
    except BaseException:
        await session.rollback()
        raise
