from icat_direct.db.engine import get_engine, icat_db_url
from icat_direct.db.postgres import PostgresIcatDatabase
from icat_direct.db.queries import QUERIES, QueryName, get_template, render_query

__all__ = [
    "QUERIES",
    "PostgresIcatDatabase",
    "QueryName",
    "get_engine",
    "get_template",
    "icat_db_url",
    "render_query",
]
