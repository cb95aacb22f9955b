"""Shared fixtures and helpers for tests."""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from icat_direct.db.queries import QueryName

_TESTS_ROOT = Path(__file__).parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        rel = Path(str(item.fspath)).relative_to(_TESTS_ROOT)
        if rel.parts and rel.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------

Router = Callable[[QueryName, Mapping[str, Any]], list[dict[str, Any]]]


def make_database(named: Router | None = None, rows: list[dict[str, Any]] | None = None) -> AsyncMock:
    """Return a mock ``IcatDatabase``.

    ``named`` answers ``run_query`` calls by query name and parameters;
    ``rows`` is what every ``run_query_string`` call returns.
    """
    db = AsyncMock()

    async def _run_query(name: QueryName, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return named(name, params or {}) if named else []

    db.run_query.side_effect = _run_query
    db.run_query_string.return_value = rows or []
    return db


@pytest.fixture
def folder_row() -> Callable[..., dict[str, Any]]:
    def _row(name: str, parent: str = "/iplant/home/alice/data", **extra: Any) -> dict[str, Any]:
        row = {
            "type": "collection",
            "uuid": None,
            "full_path": f"{parent}/{name}",
            "base_name": name,
            "data_size": 0,
            "create_ts": "01700000000",
            "modify_ts": "01700000000",
            "info_type": None,
        }
        row.update(extra)
        return row

    return _row


@pytest.fixture
def file_row() -> Callable[..., dict[str, Any]]:
    def _row(name: str, parent: str = "/iplant/home/alice/data", **extra: Any) -> dict[str, Any]:
        row = {
            "type": "dataobject",
            "uuid": None,
            "full_path": f"{parent}/{name}",
            "base_name": name,
            "data_size": 10,
            "create_ts": "01700000000",
            "modify_ts": "01700000100",
            "info_type": None,
        }
        row.update(extra)
        return row

    return _row


@pytest.fixture
def make_db() -> Callable[..., AsyncMock]:
    return make_database
