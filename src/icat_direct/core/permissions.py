"""Per-user access levels for files and folders.

Every listed entry costs one extra query (an N+1 pattern). Lookups for a
listing run concurrently, bounded by a semaphore sized to the default
connection pool, and come back in listing order. Callers that can resolve a
whole listing in one round trip can pass their own ``PermissionResolver``.
"""

from __future__ import annotations

import asyncio
import posixpath
from collections.abc import Iterable, Sequence
from typing import Any, Protocol, TypeVar

from icat_direct.core.ports.database import IcatDatabase
from icat_direct.db.queries import QueryName
from icat_direct.models import FileEntry, FolderEntry

DEFAULT_CONCURRENCY = 5

E = TypeVar("E", bound=FileEntry | FolderEntry)


class PermissionResolver(Protocol):
    async def __call__(
        self, database: IcatDatabase, user: str, entries: Sequence[FileEntry | FolderEntry]
    ) -> list[int | None]: ...


def highest_access(rows: Iterable[dict[str, Any]]) -> int | None:
    """Return the highest ``access_type_id`` in ``rows``, or None when there are none."""
    levels = [row["access_type_id"] for row in rows if row.get("access_type_id") is not None]
    return max(levels) if levels else None


async def folder_permissions_for_user(database: IcatDatabase, user: str, folder_path: str) -> int | None:
    """Returns the highest permission value for the specified user on the folder."""
    rows = await database.run_query(
        QueryName.FOLDER_PERMISSIONS_FOR_USER,
        {"user": user, "path": folder_path},
    )
    return highest_access(rows)


async def file_permissions_for_user(database: IcatDatabase, user: str, file_path: str) -> int | None:
    """Returns the highest permission value for the specified user on the file."""
    rows = await database.run_query(
        QueryName.FILE_PERMISSIONS_FOR_USER,
        {
            "user": user,
            "parent_path": posixpath.dirname(file_path),
            "base_name": posixpath.basename(file_path),
        },
    )
    return highest_access(rows)


async def permission_for_entry(database: IcatDatabase, user: str, entry: FileEntry | FolderEntry) -> int | None:
    if isinstance(entry, FileEntry):
        return await file_permissions_for_user(database, user, entry.full_path)
    return await folder_permissions_for_user(database, user, entry.full_path)


async def resolve_each(
    database: IcatDatabase,
    user: str,
    entries: Sequence[FileEntry | FolderEntry],
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[int | None]:
    """Resolve one access level per entry, one query each.

    The first failed lookup cancels the ones still pending and is raised as is.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _one(entry: FileEntry | FolderEntry) -> int | None:
        async with semaphore:
            return await permission_for_entry(database, user, entry)

    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_one(entry)) for entry in entries]
    except ExceptionGroup as failures:
        raise failures.exceptions[0] from None
    return [task.result() for task in tasks]


async def add_permissions(
    database: IcatDatabase,
    user: str,
    entries: Sequence[E],
    resolver: PermissionResolver | None = None,
) -> list[E]:
    """Attach ``access_type_id`` to each entry, preserving order."""
    if not entries:
        return []
    resolve = resolver or resolve_each
    levels = await resolve(database, user, entries)
    if len(levels) != len(entries):
        raise ValueError(f"Permission resolver returned {len(levels)} levels for {len(entries)} entries")
    return [entry.model_copy(update={"access_type_id": level}) for entry, level in zip(entries, levels)]
