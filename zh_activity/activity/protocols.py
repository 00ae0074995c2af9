"""Collaborator interfaces the aggregation engine depends on."""

from typing import Any, Protocol


class QueryExecutor(Protocol):
    """Sends a GraphQL query and returns the parsed ``data`` object.

    Implementations raise ``TransportError`` (or a subclass) on failure.
    """

    async def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...


class Cache(Protocol):
    """Workspace-scoped key/value store for previously fetched lists."""

    def get(self, key: str) -> tuple[Any, bool]: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self, key: str) -> None: ...
