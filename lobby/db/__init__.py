"""
Database interaction
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import create_async_engine

from lobby.config import config
from lobby.metrics import db_exceptions

from .models import metadata

logger = logging.getLogger(__name__)


@contextmanager
def stat_db_errors():
    """
    Collect metrics on errors thrown
    """
    try:
        yield
    except DBAPIError as e:
        db_exceptions.labels(e.__class__.__name__, e.code).inc()
        raise e


class LobbyDatabase:
    def __init__(self, url: Optional[str] = None, **kwargs):
        kwargs.setdefault("echo", config.DB_ECHO)
        self.url = url or config.DB_URL
        self.engine = create_async_engine(self.url, **kwargs)

    def acquire(self):
        """
        A connection wrapped in a transaction that commits on exit.
        """
        return self.engine.begin()

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database tables ready")

    async def close(self) -> None:
        await self.engine.dispose()


__all__ = (
    "LobbyDatabase",
    "stat_db_errors",
)
