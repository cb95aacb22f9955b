"""Unit tests for permission resolution."""

import asyncio
from collections.abc import Callable, Mapping, Sequence
from typing import Any
from unittest.mock import AsyncMock

import pytest

from icat_direct.core.permissions import (
    add_permissions,
    file_permissions_for_user,
    folder_permissions_for_user,
    highest_access,
    resolve_each,
)
from icat_direct.core.ports.database import IcatDatabase
from icat_direct.db.queries import QueryName
from icat_direct.models import FileEntry, FolderEntry

READ, WRITE, OWN = 1050, 1120, 1200


def test_highest_access_picks_the_maximum() -> None:
    assert highest_access([{"access_type_id": READ}, {"access_type_id": OWN}, {"access_type_id": WRITE}]) == OWN


def test_highest_access_without_records_is_none() -> None:
    assert highest_access([]) is None


@pytest.mark.asyncio
async def test_file_permissions_split_the_path(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db(named=lambda name, params: [{"access_type_id": READ}, {"access_type_id": WRITE}])

    level = await file_permissions_for_user(db, "alice", "/iplant/home/alice/data/a.txt")

    assert level == WRITE
    db.run_query.assert_awaited_once_with(
        QueryName.FILE_PERMISSIONS_FOR_USER,
        {"user": "alice", "parent_path": "/iplant/home/alice/data", "base_name": "a.txt"},
    )


@pytest.mark.asyncio
async def test_folder_permissions_use_the_full_path(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db(named=lambda name, params: [{"access_type_id": OWN}])

    level = await folder_permissions_for_user(db, "alice", "/iplant/home/alice/data")

    assert level == OWN
    db.run_query.assert_awaited_once_with(
        QueryName.FOLDER_PERMISSIONS_FOR_USER,
        {"user": "alice", "path": "/iplant/home/alice/data"},
    )


@pytest.mark.asyncio
async def test_no_records_means_no_access(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db()
    assert await folder_permissions_for_user(db, "bob", "/iplant/home/alice") is None


def _by_kind(name: QueryName, params: Mapping[str, Any]) -> list[dict[str, Any]]:
    if name == QueryName.FILE_PERMISSIONS_FOR_USER:
        return [{"access_type_id": READ}] if params["base_name"] == "a.txt" else []
    return [{"access_type_id": OWN}]


@pytest.mark.asyncio
async def test_add_permissions_dispatches_on_entry_type_and_keeps_order(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db(named=_by_kind)
    entries = [
        FileEntry(full_path="/z/a.txt", base_name="a.txt"),
        FolderEntry(full_path="/z/sub", base_name="sub"),
        FileEntry(full_path="/z/secret.txt", base_name="secret.txt"),
    ]

    annotated = await add_permissions(db, "alice", entries)

    assert [e.full_path for e in annotated] == ["/z/a.txt", "/z/sub", "/z/secret.txt"]
    assert [e.access_type_id for e in annotated] == [READ, OWN, None]
    assert [type(e) for e in annotated] == [FileEntry, FolderEntry, FileEntry]
    assert entries[0].access_type_id is None


@pytest.mark.asyncio
async def test_resolve_each_keeps_order_when_lookups_finish_out_of_order() -> None:
    db = AsyncMock()

    async def _slow_first(name: QueryName, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        if params["path"] == "/z/first":
            await asyncio.sleep(0.05)
            return [{"access_type_id": READ}]
        return [{"access_type_id": OWN}]

    db.run_query.side_effect = _slow_first
    entries = [FolderEntry(full_path="/z/first", base_name="first"), FolderEntry(full_path="/z/second", base_name="second")]

    assert await resolve_each(db, "alice", entries, concurrency=2) == [READ, OWN]


@pytest.mark.asyncio
async def test_add_permissions_uses_a_batched_resolver(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db()

    async def _batched(database: IcatDatabase, user: str, entries: Sequence[FileEntry | FolderEntry]) -> list[int | None]:
        return [WRITE] * len(entries)

    annotated = await add_permissions(db, "alice", [FolderEntry(full_path="/z/sub", base_name="sub")], _batched)

    assert annotated[0].access_type_id == WRITE
    db.run_query.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_permissions_rejects_short_resolver_results(make_db: Callable[..., AsyncMock]) -> None:
    async def _broken(database: IcatDatabase, user: str, entries: Sequence[FileEntry | FolderEntry]) -> list[int | None]:
        return []

    with pytest.raises(ValueError, match="0 levels for 1 entries"):
        await add_permissions(make_db(), "alice", [FolderEntry(full_path="/z/sub", base_name="sub")], _broken)


@pytest.mark.asyncio
async def test_add_permissions_on_empty_listing_issues_no_queries(make_db: Callable[..., AsyncMock]) -> None:
    db = make_db()
    assert await add_permissions(db, "alice", []) == []
    db.run_query.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_lookup_cancels_pending_lookups() -> None:
    db = AsyncMock()
    finished: list[str] = []

    async def _fail_first(name: QueryName, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        if params["path"] == "/z/0":
            raise RuntimeError("connection lost")
        await asyncio.sleep(0.05)
        finished.append(params["path"])
        return [{"access_type_id": OWN}]

    db.run_query.side_effect = _fail_first
    entries = [FolderEntry(full_path=f"/z/{i}", base_name=str(i)) for i in range(4)]

    with pytest.raises(RuntimeError, match="connection lost"):
        await add_permissions(db, "alice", entries)
    await asyncio.sleep(0.2)

    assert finished == []
