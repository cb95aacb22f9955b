import logging
import time
from collections.abc import Iterable
from typing import Any

from icat_direct.core.conditions import (
    bad_file_cond,
    bad_folder_cond,
    file_type_cond,
    merge_params,
    uuid_list_cond,
)
from icat_direct.core.permissions import PermissionResolver, add_permissions
from icat_direct.core.ports.database import IcatDatabase
from icat_direct.core.sorting import SortColumn, SortOrder, validate_sort
from icat_direct.db.queries import QueryName, render_query
from icat_direct.models import FileEntry, FolderEntry, UuidPath, entry_from_row

logger = logging.getLogger(__name__)


def _first(rows: list[dict[str, Any]], column: str) -> int:
    if not rows or rows[0].get(column) is None:
        return 0
    return int(rows[0][column])


def _normalize(entry: FileEntry | FolderEntry) -> FileEntry | FolderEntry:
    if isinstance(entry, FileEntry):
        return entry.with_normalized_info_type()
    return entry


async def number_of_files_in_folder(database: IcatDatabase, user: str, zone: str, folder_path: str) -> int:
    """Returns the number of files in a folder that the user has access to."""
    rows = await database.run_query(
        QueryName.COUNT_FILES_IN_FOLDER,
        {"user": user, "zone": zone, "path": folder_path},
    )
    return _first(rows, "count")


async def number_of_folders_in_folder(database: IcatDatabase, user: str, zone: str, folder_path: str) -> int:
    """Returns the number of folders in the specified folder that the user has access to."""
    rows = await database.run_query(
        QueryName.COUNT_FOLDERS_IN_FOLDER,
        {"user": user, "zone": zone, "path": folder_path},
    )
    return _first(rows, "count")


async def number_of_items_in_folder(
    database: IcatDatabase,
    user: str,
    zone: str,
    folder_path: str,
    info_types: Iterable[str] | None = None,
) -> int:
    """Count the folders plus the files with the given info types in a folder.

    When ``info_types`` is empty every file is counted. Only items the user
    can access are included.
    """
    type_cond = file_type_cond(info_types)
    query = render_query(QueryName.COUNT_ITEMS_IN_FOLDER, file_type_cond=type_cond.sql)
    params = merge_params({"user": user, "zone": zone, "path": folder_path}, type_cond)
    rows = await database.run_query_string(query, params)
    return _first(rows, "total")


async def number_of_all_items_under_folder(database: IcatDatabase, user: str, zone: str, folder_path: str) -> int:
    """Returns the total number of files and folders in the folder and all of its sub-folders."""
    rows = await database.run_query(
        QueryName.COUNT_ALL_ITEMS_UNDER_FOLDER,
        {"user": user, "zone": zone, "path": folder_path},
    )
    return _first(rows, "total")


async def number_of_bad_items_in_folder(
    database: IcatDatabase,
    user: str,
    zone: str,
    folder_path: str,
    info_types: Iterable[str] | None,
    bad_chars: str | None,
    bad_names: Iterable[str] | None,
    bad_paths: Iterable[str] | None,
) -> int:
    """Count the items in a folder that the client should mark as having a bad name.

    Parameters:
        info_types: info types of the files to consider; all files when empty
        bad_chars: an item whose name contains any of these characters is bad
        bad_names: item names that are bad
        bad_paths: absolute paths of items that are bad

    Files are only counted when they also match ``info_types``.
    """
    bad_names = list(bad_names or ())
    bad_paths = list(bad_paths or ())
    type_cond = file_type_cond(info_types)
    file_cond = bad_file_cond(folder_path, bad_chars, bad_names, bad_paths)
    folder_cond = bad_folder_cond(folder_path, bad_chars, bad_names, bad_paths)
    query = render_query(
        QueryName.COUNT_BAD_ITEMS_IN_FOLDER,
        file_type_cond=type_cond.sql,
        bad_file_cond=file_cond.sql,
        bad_folder_cond=folder_cond.sql,
    )
    params = merge_params(
        {"user": user, "zone": zone, "path": folder_path},
        type_cond,
        file_cond,
        folder_cond,
    )
    rows = await database.run_query_string(query, params)
    return _first(rows, "total_filtered")


async def list_folders_in_folder(
    database: IcatDatabase,
    user: str,
    zone: str,
    folder_path: str,
    resolver: PermissionResolver | None = None,
) -> list[FolderEntry]:
    """Returns the folders in the specified folder that the user can access, with permissions."""
    rows = await database.run_query(
        QueryName.LIST_FOLDERS_IN_FOLDER,
        {"user": user, "zone": zone, "path": folder_path},
    )
    folders = [FolderEntry.model_validate(row) for row in rows]
    return await add_permissions(database, user, folders, resolver)


async def folder_path_listing(database: IcatDatabase, user: str, zone: str, folder_path: str) -> list[str]:
    """Returns the full path of everything in the folder that is visible to the user."""
    rows = await database.run_query(
        QueryName.FOLDER_LISTING,
        {"user": user, "zone": zone, "path": folder_path},
    )
    return [row["full_path"] for row in rows]


async def paged_folder_listing(
    database: IcatDatabase,
    user: str,
    zone: str,
    folder_path: str,
    sort_column: SortColumn | str,
    sort_order: SortOrder | str,
    limit: int,
    offset: int,
    file_types: Iterable[str] | None = None,
) -> list[FileEntry | FolderEntry]:
    """Returns a page from a folder listing.

    Folders always come before files; ``sort_column`` and ``sort_order`` only
    order entries within each group, so sorting by ``type`` in either direction
    leaves folders first. Files without an info type are reported as ``raw``.
    """
    column_sql, order_sql = validate_sort(sort_column, sort_order)
    type_cond = file_type_cond(file_types)
    query = render_query(
        QueryName.PAGED_FOLDER_LISTING,
        file_type_cond=type_cond.sql,
        sort_column=column_sql,
        sort_direction=order_sql,
    )
    params = merge_params(
        {"user": user, "zone": zone, "path": folder_path, "limit": limit, "offset": offset},
        type_cond,
    )
    rows = await database.run_query_string(query, params)
    return [_normalize(entry_from_row(row)) for row in rows]


async def _select_with_uuids(database: IcatDatabase, name: QueryName, uuids: Iterable[Any]) -> list[UuidPath]:
    uuid_cond = uuid_list_cond(uuids)
    if not uuid_cond.params:
        return []
    query = render_query(name, uuid_cond=uuid_cond.sql)
    rows = await database.run_query_string(query, uuid_cond.params)
    return [UuidPath(str(row["uuid"]), row["path"]) for row in rows]


async def select_files_with_uuids(database: IcatDatabase, uuids: Iterable[Any]) -> list[UuidPath]:
    """Given a set of UUIDs, returns a UUID-path pair for each UUID that corresponds to a file."""
    return await _select_with_uuids(database, QueryName.SELECT_FILES_WITH_UUIDS, uuids)


async def select_folders_with_uuids(database: IcatDatabase, uuids: Iterable[Any]) -> list[UuidPath]:
    """Given a set of UUIDs, returns a UUID-path pair for each UUID that corresponds to a folder."""
    return await _select_with_uuids(database, QueryName.SELECT_FOLDERS_WITH_UUIDS, uuids)


async def paged_uuid_listing(
    database: IcatDatabase,
    user: str,
    zone: str,
    sort_column: SortColumn | str,
    sort_order: SortOrder | str,
    limit: int,
    offset: int,
    uuids: Iterable[Any],
    resolver: PermissionResolver | None = None,
) -> list[FileEntry | FolderEntry]:
    """Returns a page of the entries with the given UUIDs, annotated with the user's permissions.

    Folders come before files regardless of the requested sort.
    An empty UUID set returns an empty page without touching the database.
    """
    column_sql, order_sql = validate_sort(sort_column, sort_order)
    uuid_cond = uuid_list_cond(uuids)
    if not uuid_cond.params:
        return []

    query = render_query(
        QueryName.PAGED_UUID_LISTING,
        uuid_cond=uuid_cond.sql,
        sort_column=column_sql,
        sort_direction=order_sql,
    )
    params = merge_params({"user": user, "zone": zone, "limit": limit, "offset": offset}, uuid_cond)

    started = time.perf_counter()
    rows = await database.run_query_string(query, params)
    entries = await add_permissions(database, user, [entry_from_row(row) for row in rows], resolver)
    logger.debug(
        "uuid listing for %s: %d of %d uuids found, %.3fs including permission lookups",
        user,
        len(entries),
        len(uuid_cond.params["uuids"]),
        time.perf_counter() - started,
    )
    return entries
