"""Database wiring for the application: session dependency and lifecycle hooks."""

import logging
from typing import AsyncGenerator

import fastapi
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.config import get_settings
from components.core.database import DatabaseManager
# Models must be imported so their tables are registered on Base.metadata
import components.user.models
import components.budget.models

logger = logging.getLogger(__name__)

db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions."""
    async with db_manager.get_db() as session:
        yield session


def init_db(app: fastapi.FastAPI) -> None:
    """
    Attach database lifecycle hooks to ``app``.

    In DEBUG mode missing tables are created on startup; the engine is
    disposed on shutdown.
    """

    async def on_startup() -> None:
        if get_settings().DEBUG:
            logger.info("DEBUG mode: creating missing tables")
            await db_manager.create_tables()

    async def on_shutdown() -> None:
        await db_manager.dispose()

    app.router.add_event_handler("startup", on_startup)
    app.router.add_event_handler("shutdown", on_shutdown)
