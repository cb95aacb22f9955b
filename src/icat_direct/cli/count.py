import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated

import typer

from icat_direct.cli import common
from icat_direct.core.listing import (
    number_of_all_items_under_folder,
    number_of_bad_items_in_folder,
    number_of_files_in_folder,
    number_of_folders_in_folder,
    number_of_items_in_folder,
)
from icat_direct.core.ports.database import IcatDatabase

count_app = typer.Typer(help="Count the items a user can see.")

UserOption = Annotated[str, typer.Option(help="Name of the user.")]
ZoneOption = Annotated[str, typer.Option(help="Authentication zone of the user.")]
FolderArgument = Annotated[str, typer.Argument(help="Absolute path of the folder.")]
InfoTypeOption = Annotated[
    list[str] | None,
    typer.Option("--info-type", help="Only count files with this info type (repeatable)."),
]


def _print_count(fetch: Callable[[IcatDatabase], Awaitable[int]]) -> None:
    db = common.get_database()

    async def _run() -> None:
        try:
            common.console.print(await fetch(db))
        finally:
            await db.dispose()

    asyncio.run(_run())


@count_app.command("files")
def files(folder: FolderArgument, user: UserOption, zone: ZoneOption) -> None:
    """Count the files in a folder."""
    _print_count(lambda db: number_of_files_in_folder(db, user, zone, folder))


@count_app.command("folders")
def folders(folder: FolderArgument, user: UserOption, zone: ZoneOption) -> None:
    """Count the sub-folders of a folder."""
    _print_count(lambda db: number_of_folders_in_folder(db, user, zone, folder))


@count_app.command("items")
def items(
    folder: FolderArgument,
    user: UserOption,
    zone: ZoneOption,
    info_type: InfoTypeOption = None,
) -> None:
    """Count the folders and matching files in a folder."""
    _print_count(lambda db: number_of_items_in_folder(db, user, zone, folder, info_type or []))


@count_app.command("all")
def all_items(folder: FolderArgument, user: UserOption, zone: ZoneOption) -> None:
    """Count every file and folder under a folder, recursively."""
    _print_count(lambda db: number_of_all_items_under_folder(db, user, zone, folder))


@count_app.command("bad")
def bad(
    folder: FolderArgument,
    user: UserOption,
    zone: ZoneOption,
    info_type: InfoTypeOption = None,
    bad_chars: Annotated[str, typer.Option(help="Characters that make a name bad.")] = "",
    bad_name: Annotated[list[str] | None, typer.Option("--bad-name", help="A bad item name (repeatable).")] = None,
    bad_path: Annotated[list[str] | None, typer.Option("--bad-path", help="A bad item path (repeatable).")] = None,
) -> None:
    """Count the items in a folder that have a bad name or path."""
    _print_count(
        lambda db: number_of_bad_items_in_folder(
            db, user, zone, folder, info_type or [], bad_chars, bad_name or [], bad_path or []
        )
    )
