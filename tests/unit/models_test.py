"""Unit tests for entry models."""

from collections.abc import Callable
from typing import Any

import pytest
from pydantic import ValidationError

from icat_direct.models import FileEntry, FolderEntry, entry_from_row


def test_rows_dispatch_on_type(file_row: Callable[..., dict[str, Any]], folder_row: Callable[..., dict[str, Any]]) -> None:
    assert isinstance(entry_from_row(file_row("a.txt")), FileEntry)
    assert isinstance(entry_from_row(folder_row("sub")), FolderEntry)


def test_unknown_type_is_rejected(file_row: Callable[..., dict[str, Any]]) -> None:
    with pytest.raises(ValidationError):
        entry_from_row(file_row("a.txt", type="linkPoint"))


@pytest.mark.parametrize("info_type", [None, ""])
def test_file_without_info_type_is_raw(info_type: str | None) -> None:
    entry = FileEntry(full_path="/z/a.txt", base_name="a.txt", info_type=info_type)
    assert entry.with_normalized_info_type().info_type == "raw"


def test_file_with_info_type_is_unchanged() -> None:
    entry = FileEntry(full_path="/z/b.csv", base_name="b.csv", info_type="csv")
    assert entry.with_normalized_info_type() is entry
