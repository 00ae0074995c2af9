"""Tests for the activity aggregator."""

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import patch

import pytest
import requests

from zh_activity.activity.engine import (
    GITHUB_NOT_CONFIGURED,
    ActivityAggregator,
    ActivityOptions,
)
from zh_activity.errors import AmbiguousMatch, InvalidTimeFormat, TransportError
from zh_activity.github_client.client import GitHubGraphQLClient
from zh_activity.github_client.queries import ACTIVITY_SEARCH_QUERY
from zh_activity.zenhub_client.queries import (
    CLOSED_ACTIVITY_QUERY,
    DEFAULT_PR_PIPELINE_QUERY,
    ISSUE_BY_INFO_QUERY,
    LIST_PIPELINES_QUERY,
    LIST_REPOS_QUERY,
    PIPELINE_ACTIVITY_QUERY,
    TIMELINE_BY_NODE_QUERY,
)
from zh_activity.zenhub_client.workspace import WorkspaceResolver

PIPELINES = [
    {"id": "p1", "name": "Backlog"},
    {"id": "p2", "name": "In Progress"},
]

REPOS = [
    {"id": "r1", "ghId": 101, "name": "api", "ownerName": "acme"},
    {"id": "r2", "ghId": 102, "name": "web", "ownerName": "acme"},
]


def connection(nodes: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "totalCount": len(nodes),
        "pageInfo": {"hasNextPage": False, "endCursor": None},
        "nodes": nodes,
    }


def search_node(number: int, title: str, updated_at: datetime, repo: str = "api"):
    return {
        "number": number,
        "title": title,
        "updatedAt": updated_at.isoformat(),
        "repository": {"name": repo, "owner": {"login": "acme"}},
    }


class Workspace:
    """Routes ZenHub queries to canned responses for one test workspace."""

    def __init__(self, issue_node, now: datetime):
        def hours(h: int) -> datetime:
            return now - timedelta(hours=h)

        self.pipeline_nodes = {
            "p1": [
                issue_node("z1", 1, hours(5)),
                issue_node("z2", 2, hours(1), repo="web"),
            ],
            "p2": [issue_node("z3", 3, hours(3))],
        }
        self.closed_nodes = [
            issue_node("z4", 4, hours(2)),
            issue_node("z5", 5, hours(48)),
        ]
        self.backfill: dict[int, Any] = {}
        self.timeline_events: dict[str, list[dict[str, Any]]] = {}

    def __call__(self, query: str, variables: dict[str, Any]) -> Any:
        if query == LIST_PIPELINES_QUERY:
            return {"workspace": {"pipelinesConnection": {"nodes": PIPELINES}}}
        if query == LIST_REPOS_QUERY:
            return {"workspace": {"repositoriesConnection": connection(REPOS)}}
        if query == PIPELINE_ACTIVITY_QUERY:
            nodes = self.pipeline_nodes[variables["pipelineId"]]
            return {"searchIssuesByPipeline": connection(nodes)}
        if query == CLOSED_ACTIVITY_QUERY:
            return {"searchClosedIssues": connection(self.closed_nodes)}
        if query == ISSUE_BY_INFO_QUERY:
            return {"issueByInfo": self.backfill.get(variables["issueNumber"])}
        if query == DEFAULT_PR_PIPELINE_QUERY:
            return {"workspace": {"pipelinesConnection": {"nodes": []}}}
        if query == TIMELINE_BY_NODE_QUERY:
            return {
                "node": {
                    "id": variables["id"],
                    "timelineItems": {
                        "pageInfo": {"hasNextPage": False},
                        "nodes": self.timeline_events.get(variables["id"], []),
                    },
                }
            }
        raise AssertionError(f"unexpected query: {query[:40]}")


@pytest.fixture
def workspace(issue_node, now: datetime) -> Workspace:
    return Workspace(issue_node, now)


@pytest.fixture
def build(make_executor, memory_cache, workspace: Workspace):
    def factory(github=None) -> tuple[ActivityAggregator, Any]:
        zenhub = make_executor(workspace)
        resolver = WorkspaceResolver(zenhub, "ws1", memory_cache)
        return ActivityAggregator(zenhub, "ws1", resolver, github=github), zenhub

    return factory


class TestAggregate:
    """Test ActivityAggregator.aggregate."""

    @pytest.mark.asyncio
    async def test_zenhub_only(self, build, now: datetime) -> None:
        """Test every pipeline and the closed items are merged and sorted."""
        aggregator, _ = build()

        result = await aggregator.aggregate(ActivityOptions(), now=now)

        assert [item.ref for item in result.issues] == [
            "web#2",
            "api#4",
            "api#3",
            "api#1",
        ]
        assert [item.pipeline for item in result.issues] == [
            "Backlog",
            "Closed",
            "In Progress",
            "Backlog",
        ]
        assert result.summary.issue_count == 4
        assert result.summary.pipeline_count == 3
        assert result.pipeline_order == ["Backlog", "In Progress"]
        assert result.start == now - timedelta(days=1)
        assert result.end == now
        assert result.warnings == []
        assert not result.show_source

    @pytest.mark.asyncio
    async def test_pipeline_filter(self, build, now: datetime) -> None:
        aggregator, zenhub = build()

        result = await aggregator.aggregate(
            ActivityOptions(pipeline="progress"), now=now
        )

        assert [item.ref for item in result.issues] == ["api#4", "api#3"]
        assert result.pipeline_order == ["In Progress"]
        scanned = [v["pipelineId"] for v in zenhub.calls_for(PIPELINE_ACTIVITY_QUERY)]
        assert scanned == ["p2"]

    @pytest.mark.asyncio
    async def test_repo_filter(self, build, now: datetime) -> None:
        aggregator, _ = build()

        result = await aggregator.aggregate(ActivityOptions(repo="acme/web"), now=now)

        assert [item.ref for item in result.issues] == ["web#2"]
        assert result.summary.pipeline_count == 1

    @pytest.mark.asyncio
    async def test_invalid_from(self, build, now: datetime) -> None:
        aggregator, zenhub = build()

        with pytest.raises(InvalidTimeFormat, match="invalid --from value"):
            await aggregator.aggregate(ActivityOptions(from_expr="soon"), now=now)
        assert zenhub.calls == []

    @pytest.mark.asyncio
    async def test_ambiguous_pipeline(self, build, now: datetime) -> None:
        aggregator, _ = build()

        # "o" appears in both "Backlog" and "In Progress"
        with pytest.raises(AmbiguousMatch):
            await aggregator.aggregate(ActivityOptions(pipeline="o"), now=now)

    @pytest.mark.asyncio
    async def test_scan_failure_aborts(
        self, make_executor, memory_cache, workspace: Workspace, now: datetime
    ) -> None:
        def handler(query: str, variables: dict[str, Any]) -> Any:
            if query == CLOSED_ACTIVITY_QUERY:
                return TransportError("closed search failed")
            return workspace(query, variables)

        zenhub = make_executor(handler)
        aggregator = ActivityAggregator(
            zenhub, "ws1", WorkspaceResolver(zenhub, "ws1", memory_cache)
        )

        with pytest.raises(TransportError, match="closed search failed"):
            await aggregator.aggregate(ActivityOptions(), now=now)


class TestGitHubMerge:
    """Test the --github path of the aggregator."""

    @pytest.mark.asyncio
    async def test_github_not_configured(self, build, now: datetime) -> None:
        aggregator, _ = build()

        result = await aggregator.aggregate(
            ActivityOptions(include_github=True), now=now
        )

        assert result.warnings == [GITHUB_NOT_CONFIGURED]
        assert result.summary.issue_count == 4
        assert not result.show_source

    @pytest.mark.asyncio
    async def test_discovered_items_merged_and_backfilled(
        self, build, make_executor, workspace: Workspace, now: datetime
    ) -> None:
        """Test ZenHub data wins for known refs and new refs are backfilled."""

        def github_handler(query: str, variables: dict[str, Any]) -> Any:
            assert query == ACTIVITY_SEARCH_QUERY
            if "is:pr" in variables["query"]:
                return {"search": connection([])}
            return {
                "search": connection(
                    [
                        search_node(1, "GitHub title", now - timedelta(minutes=5)),
                        search_node(50, "Found on GitHub", now - timedelta(minutes=30)),
                        search_node(60, "Not in ZenHub", now - timedelta(hours=4)),
                    ]
                )
            }

        workspace.backfill[50] = {
            "id": "z50",
            "pipelineIssue": {"pipeline": {"name": "In Progress"}},
        }
        github = make_executor(github_handler)
        aggregator, _ = build(github=github)

        result = await aggregator.aggregate(
            ActivityOptions(include_github=True), now=now
        )

        by_ref = {item.ref: item for item in result.issues}
        assert by_ref["api#1"].id == "z1"
        assert by_ref["api#1"].title == "Issue 1"
        assert by_ref["api#50"].id == "z50"
        assert by_ref["api#50"].pipeline == "In Progress"
        assert by_ref["api#50"].github_sourced
        assert by_ref["api#60"].id == "gh:acme/api#60"
        assert by_ref["api#60"].pipeline == "Unknown"
        assert result.issues[0].ref == "api#50"
        assert result.warnings == []
        assert result.show_source

    @pytest.mark.asyncio
    async def test_search_failure_warns(
        self, build, make_executor, now: datetime
    ) -> None:
        github = make_executor(lambda q, v: TransportError("rate limited"))
        aggregator, _ = build(github=github)

        result = await aggregator.aggregate(
            ActivityOptions(include_github=True), now=now
        )

        assert result.warnings == ["GitHub search failed: rate limited"]
        assert result.summary.issue_count == 4


class TestDetailMode:
    """Test detail enrichment through the aggregator."""

    @pytest.mark.asyncio
    async def test_events_attached(
        self, build, workspace: Workspace, now: datetime
    ) -> None:
        workspace.timeline_events["z3"] = [
            {
                "id": "e1",
                "key": "issue.add_to_sprint",
                "data": {"sprint": {"name": "Sprint 9"}},
                "createdAt": (now - timedelta(hours=3)).isoformat(),
            }
        ]
        aggregator, _ = build()

        result = await aggregator.aggregate(ActivityOptions(detail=True), now=now)

        by_ref = {item.ref: item for item in result.issues}
        assert [e.description for e in by_ref["api#3"].events] == [
            'added to sprint "Sprint 9"'
        ]
        assert by_ref["api#1"].events == []
        assert result.detail


class TestGitHubUnreachable:
    """Test a GitHub network failure degrades to a warning."""

    @pytest.mark.asyncio
    async def test_connection_error_warns(self, build, now: datetime) -> None:
        with patch("zh_activity.github_client.client.Github") as mock_class:
            requester = mock_class.return_value.requester
            requester.requestJsonAndCheck.side_effect = (
                requests.exceptions.ConnectionError("unreachable")
            )
            github = GitHubGraphQLClient(token="ghp_test")
            aggregator, _ = build(github=github)

            result = await aggregator.aggregate(
                ActivityOptions(include_github=True, detail=True), now=now
            )

        assert result.warnings == [
            "GitHub search failed: GitHub is unreachable: unreachable"
        ]
        assert result.summary.issue_count == 4
        assert all(item.events == [] for item in result.issues)
