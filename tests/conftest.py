"""Test configuration and fixtures."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from zh_activity.activity.models import TimeWindow

NOW = datetime(2026, 2, 10, 12, 0, 0, tzinfo=timezone.utc)

Handler = Callable[[str, dict[str, Any]], Any]


class FakeExecutor:
    """Query executor answering from a handler and recording every call.

    The handler receives ``(query, variables)`` and returns the ``data``
    mapping, or an exception instance to raise.
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        variables = variables or {}
        self.calls.append((query, variables))
        # Yield so concurrent callers interleave
        await asyncio.sleep(0)
        result = self.handler(query, variables)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_for(self, query: str) -> list[dict[str, Any]]:
        return [variables for sent, variables in self.calls if sent == query]


class MemoryCache:
    """In-memory stand-in for the file cache."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> tuple[Any, bool]:
        if key in self.data:
            return self.data[key], True
        return None, False

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


def iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def window() -> TimeWindow:
    """The 24 hours before NOW."""
    return TimeWindow(start=NOW - timedelta(hours=24), end=NOW)


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def make_executor() -> Callable[[Handler], FakeExecutor]:
    """Factory for fake query executors."""
    return FakeExecutor


@pytest.fixture
def issue_node() -> Callable[..., dict[str, Any]]:
    """Factory for ZenHub search result nodes."""

    def build(
        node_id: str,
        number: int,
        updated_at: datetime | None,
        gh_updated_at: datetime | None = None,
        repo: str = "api",
        owner: str = "acme",
        pipeline: str | None = None,
        assignees: list[str] | None = None,
    ) -> dict[str, Any]:
        node: dict[str, Any] = {
            "id": node_id,
            "number": number,
            "title": f"Issue {number}",
            "state": "OPEN",
            "updatedAt": iso(updated_at) if updated_at else "",
            "ghUpdatedAt": iso(gh_updated_at) if gh_updated_at else "",
            "repository": {"name": repo, "ownerName": owner},
            "assignees": {"nodes": [{"login": a} for a in assignees or []]},
            "pipelineIssue": None,
        }
        if pipeline is not None:
            node["pipelineIssue"] = {"pipeline": {"name": pipeline}}
        return node

    return build
