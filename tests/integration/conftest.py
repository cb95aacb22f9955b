"""Session-scoped fixtures for integration tests against a PostgreSQL container."""

import asyncio
import re
import shutil
import time
import warnings
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import create_async_engine
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from icat_direct.db.postgres import PostgresIcatDatabase

_SEED_SQL = Path(__file__).parent / "icat_seed.sql"
_IMAGE = "postgres:16-alpine"


@pytest.fixture(scope="session")
def postgres_container() -> Generator[DockerContainer, None, None]:
    """Start a throwaway PostgreSQL container for the session."""
    if shutil.which("docker") is None:
        pytest.skip("docker is not installed")
    container = (
        DockerContainer(_IMAGE)
        .with_exposed_ports(5432)
        .with_env("POSTGRES_PASSWORD", "postgres")
        .with_env("POSTGRES_DB", "ICAT")
        .with_env("POSTGRES_INITDB_ARGS", "--locale=C --encoding=UTF8")
    )
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"cannot start {_IMAGE}: {exc}")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        wait_for_logs(container, "database system is ready to accept connections", timeout=60)
    yield container
    container.stop()


@pytest.fixture(scope="session")
def test_db_url(postgres_container: DockerContainer) -> str:
    host = postgres_container.get_container_host_ip()
    port = postgres_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://postgres:postgres@{host}:{port}/ICAT"


async def _load_seed(url: str, timeout: float = 30.0) -> None:
    engine = create_async_engine(url)
    statements = [s.strip() for s in re.split(r";\s*\n", _SEED_SQL.read_text()) if s.strip()]
    deadline = time.monotonic() + timeout
    try:
        while True:
            try:
                async with engine.begin() as conn:
                    for statement in statements:
                        await conn.exec_driver_sql(statement)
                return
            except (DBAPIError, OSError):
                # The server restarts once after initdb; retry until it is back.
                if time.monotonic() > deadline:
                    raise
                await asyncio.sleep(0.5)
    finally:
        await engine.dispose()


@pytest.fixture(scope="session")
def seeded_db_url(test_db_url: str) -> str:
    asyncio.run(_load_seed(test_db_url))
    return test_db_url


@pytest_asyncio.fixture
async def db(seeded_db_url: str) -> AsyncGenerator[PostgresIcatDatabase, None]:
    """Per-test database so each event loop gets its own connection pool."""
    instance = PostgresIcatDatabase(create_async_engine(seeded_db_url, future=True))
    yield instance
    await instance.dispose()
