from collections.abc import Mapping
from typing import Any, Protocol

from icat_direct.db.queries import QueryName


class IcatDatabase(Protocol):
    async def run_query(self, name: QueryName, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]: ...

    async def run_query_string(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
