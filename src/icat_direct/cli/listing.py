import asyncio
from typing import Annotated

import typer

from icat_direct.cli import common
from icat_direct.core.listing import (
    folder_path_listing,
    list_folders_in_folder,
    paged_folder_listing,
    paged_uuid_listing,
    select_files_with_uuids,
    select_folders_with_uuids,
)
from icat_direct.core.sorting import SortColumn, SortOrder

list_app = typer.Typer(help="List the items a user can see.")
lookup_app = typer.Typer(help="Resolve UUIDs to paths.")

UserOption = Annotated[str, typer.Option(help="Name of the user.")]
ZoneOption = Annotated[str, typer.Option(help="Authentication zone of the user.")]
FolderArgument = Annotated[str, typer.Argument(help="Absolute path of the folder.")]
UuidsArgument = Annotated[list[str], typer.Argument(help="UUIDs to look up.")]
SortColumnOption = Annotated[SortColumn, typer.Option(help="Column to sort by.")]
SortOrderOption = Annotated[SortOrder, typer.Option(help="Sort direction.")]
LimitOption = Annotated[int, typer.Option(min=0, help="Max rows to return.")]
OffsetOption = Annotated[int, typer.Option(min=0, help="Rows to skip.")]


@list_app.command("folders")
def folders(folder: FolderArgument, user: UserOption, zone: ZoneOption) -> None:
    """List the sub-folders of a folder with the user's permissions."""
    db = common.get_database()

    async def _run() -> None:
        try:
            common.render_entries(await list_folders_in_folder(db, user, zone, folder))
        finally:
            await db.dispose()

    asyncio.run(_run())


@list_app.command("paths")
def paths(folder: FolderArgument, user: UserOption, zone: ZoneOption) -> None:
    """Print the full path of every visible item in a folder."""
    db = common.get_database()

    async def _run() -> None:
        try:
            for path in await folder_path_listing(db, user, zone, folder):
                common.console.print(path, highlight=False)
        finally:
            await db.dispose()

    asyncio.run(_run())


@list_app.command("page")
def page(
    folder: FolderArgument,
    user: UserOption,
    zone: ZoneOption,
    sort_column: SortColumnOption = SortColumn.BASE_NAME,
    sort_order: SortOrderOption = SortOrder.ASC,
    limit: LimitOption = 50,
    offset: OffsetOption = 0,
    file_type: Annotated[
        list[str] | None, typer.Option("--file-type", help="Only list files with this info type (repeatable).")
    ] = None,
) -> None:
    """List one page of a folder."""
    db = common.get_database()

    async def _run() -> None:
        try:
            entries = await paged_folder_listing(
                db, user, zone, folder, sort_column, sort_order, limit, offset, file_type or []
            )
            common.render_entries(entries)
        finally:
            await db.dispose()

    asyncio.run(_run())


@list_app.command("uuids")
def uuids(
    uuid: UuidsArgument,
    user: UserOption,
    zone: ZoneOption,
    sort_column: SortColumnOption = SortColumn.BASE_NAME,
    sort_order: SortOrderOption = SortOrder.ASC,
    limit: LimitOption = 50,
    offset: OffsetOption = 0,
) -> None:
    """List one page of the items with the given UUIDs."""
    db = common.get_database()

    async def _run() -> None:
        try:
            entries = await paged_uuid_listing(db, user, zone, sort_column, sort_order, limit, offset, uuid)
            common.render_entries(entries)
        finally:
            await db.dispose()

    asyncio.run(_run())


@lookup_app.command("files")
def lookup_files(uuid: UuidsArgument) -> None:
    """Resolve file UUIDs to paths."""
    db = common.get_database()

    async def _run() -> None:
        try:
            common.render_table(["uuid", "path"], await select_files_with_uuids(db, uuid))
        finally:
            await db.dispose()

    asyncio.run(_run())


@lookup_app.command("folders")
def lookup_folders(uuid: UuidsArgument) -> None:
    """Resolve folder UUIDs to paths."""
    db = common.get_database()

    async def _run() -> None:
        try:
            common.render_table(["uuid", "path"], await select_folders_with_uuids(db, uuid))
        finally:
            await db.dispose()

    asyncio.run(_run())
