import os

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

DEFAULT_PORT = 5432
DEFAULT_DB = "ICAT"


def icat_db_url(
    host: str,
    user: str | None,
    password: str | None,
    port: int = DEFAULT_PORT,
    db: str = DEFAULT_DB,
) -> URL:
    """Build the SQLAlchemy URL for an ICAT database."""
    return URL.create(
        "postgresql+asyncpg",
        username=user,
        password=password,
        host=host,
        port=port,
        database=db,
    )


def get_engine(url: str | URL | None = None) -> AsyncEngine:
    if url is None:
        url = os.getenv("ICAT_DATABASE_URL") or icat_db_url(
            os.getenv("ICAT_HOST", "localhost"),
            os.getenv("ICAT_USER"),
            os.getenv("ICAT_PASSWORD"),
            port=int(os.getenv("ICAT_PORT", str(DEFAULT_PORT))),
            db=os.getenv("ICAT_DB", DEFAULT_DB),
        )
    return create_async_engine(url, future=True)
