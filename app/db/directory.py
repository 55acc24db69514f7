"""The user directory: where users, one-time codes, tasks and conversations live.

One ``Directory`` is built by the application lifespan and shared by every
request. ``session()`` hands out a ``Repositories`` bundle bound to a single
unit of work.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator

import asyncpg
from asyncpg.pool import Pool

from app.core.config import Settings
from app.core.exceptions import DatabaseUnavailableException
from app.db.session import close_db_pool, create_db_pool
from app.repositories.base import Repositories
from app.repositories.conversation_repo import PgConversationRepository
from app.repositories.memory_repo import (
    MemoryConversationRepository,
    MemoryOTPRepository,
    MemoryTables,
    MemoryTaskRepository,
    MemoryUserRepository,
)
from app.repositories.otp_repo import PgOTPRepository
from app.repositories.task_repo import PgTaskRepository
from app.repositories.user_repo import PgUserRepository

logger = logging.getLogger(__name__)


class Directory(ABC):
    name: str

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    def session(self) -> AsyncIterator[Repositories]:
        """Async context manager yielding bound repositories."""

    @abstractmethod
    async def ping(self) -> bool: ...


class PostgresDirectory(Directory):
    name = "postgres"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.pool: Pool | None = None

    async def connect(self) -> None:
        if self.pool is None:
            self.pool = await create_db_pool(self.settings)

    async def close(self) -> None:
        await close_db_pool(self.pool)
        self.pool = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Repositories]:
        if self.pool is None:
            raise DatabaseUnavailableException("Database pool is not initialized.")
        async with self.pool.acquire() as conn:
            yield Repositories(
                users=PgUserRepository(conn),
                otps=PgOTPRepository(conn),
                tasks=PgTaskRepository(conn),
                conversations=PgConversationRepository(conn),
                transaction=conn.transaction,
            )

    async def ping(self) -> bool:
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT 1;") == 1
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning("Database ping failed: %s", e)
            return False


@asynccontextmanager
async def _no_transaction():
    yield


class MemoryDirectory(Directory):
    name = "memory"

    def __init__(self):
        self.tables = MemoryTables()

    async def connect(self) -> None:
        logger.warning("Using in-memory directory; data is lost on restart (development only).")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Repositories]:
        yield Repositories(
            users=MemoryUserRepository(self.tables),
            otps=MemoryOTPRepository(self.tables),
            tasks=MemoryTaskRepository(self.tables),
            conversations=MemoryConversationRepository(self.tables),
            transaction=_no_transaction,
        )

    async def ping(self) -> bool:
        return True


def build_directory(settings: Settings) -> Directory:
    backend = settings.DATABASE_BACKEND.lower()
    if backend == "postgres":
        return PostgresDirectory(settings)
    if backend == "memory":
        return MemoryDirectory()
    raise ValueError(f"Unknown DATABASE_BACKEND {settings.DATABASE_BACKEND!r}; expected 'postgres' or 'memory'")
