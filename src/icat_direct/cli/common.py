from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from icat_direct.core.ports.database import IcatDatabase
from icat_direct.models import FileEntry, FolderEntry

console = Console()

ENTRY_COLUMNS = ["type", "full_path", "data_size", "modify_ts", "info_type", "access_type_id"]


def get_database() -> IcatDatabase:
    from icat_direct.db.engine import get_engine
    from icat_direct.db.postgres import PostgresIcatDatabase

    return PostgresIcatDatabase(get_engine())


def render_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def render_entries(entries: Sequence[FileEntry | FolderEntry]) -> None:
    render_table(ENTRY_COLUMNS, [[getattr(e, col) for col in ENTRY_COLUMNS] for e in entries])
