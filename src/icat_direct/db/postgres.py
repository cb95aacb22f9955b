import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from icat_direct.db.queries import QUERIES, QueryName, get_template

logger = logging.getLogger(__name__)


class PostgresIcatDatabase:
    """Runs catalog queries against the ICAT, one read-only round trip per call."""

    def __init__(self, engine: AsyncEngine, catalog: dict[QueryName, str] | None = None) -> None:
        self._engine = engine
        self._catalog = QUERIES if catalog is None else catalog

    async def run_query(self, name: QueryName, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a catalog query that needs no fragment substitution."""
        sql = get_template(name, self._catalog)
        rows = await self._execute(sql, params)
        logger.debug("query %s returned %d rows", QueryName(name).value, len(rows))
        return rows

    async def run_query_string(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run an already rendered query string without a catalog lookup."""
        rows = await self._execute(sql, params)
        logger.debug("query %r returned %d rows", " ".join(sql.split())[:80], len(rows))
        return rows

    async def _execute(self, sql: str, params: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        # The connection is rolled back on close; nothing is ever committed.
        async with self._engine.connect() as conn:
            result = await conn.execute(text(sql), dict(params or {}))
            return [dict(row) for row in result.mappings().all()]

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()
