from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .models import DatabaseConfig

LOGGER = logging.getLogger("carto_sync.db")


class DatabaseRunner:
    """Execute rendered statement batches directly against a PostGIS database."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: Optional[AsyncEngine] = None

    async def __aenter__(self) -> "DatabaseRunner":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    async def open(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine

        deadline = time.time() + self._config.connect_timeout
        attempts = 0
        while True:
            attempts += 1
            try:
                LOGGER.info("Creating SQLAlchemy engine (attempt %s)", attempts)
                async_engine = create_async_engine(self._config.url)
                async with async_engine.connect() as connection:
                    await connection.execute(text("SELECT 1"))
                self._engine = async_engine
                LOGGER.info("Connected to database")
                break
            except OperationalError as exc:
                if time.time() >= deadline:
                    raise RuntimeError("Database connection timed out") from exc
                LOGGER.warning("Database not ready yet (%s), retrying...", exc)
                await asyncio.sleep(min(2 * attempts, 10))

        return self._engine

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Engine not initialised; call open()")
        return self._engine

    async def run(self, sql: str) -> None:
        # Driver-level execution: rendered literals may contain ':name' text
        # that SQLAlchemy's text() would treat as bind parameters.
        async with self.engine.begin() as conn:
            await conn.exec_driver_sql(sql)

    async def list_tables(self) -> list[str]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT tablename FROM pg_catalog.pg_tables WHERE schemaname = current_schema()")
            )
            return [row[0] for row in result]

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
