"""GitHub-side discovery of recently updated items and ZenHub backfill."""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import ActivityError, PartialEnrichmentFailure, TransportError
from ..github_client.models import GitHubSearchConnection, GitHubSearchNode
from ..github_client.queries import ACTIVITY_SEARCH_QUERY
from ..github_client.search import (
    TYPE_QUALIFIERS,
    batch_repo_clauses,
    build_activity_search_query,
    build_repo_clauses,
)
from ..utils.date_parser import format_datetime_for_github
from ..zenhub_client.models import IssueByInfo, ZenHubPipelineNode
from ..zenhub_client.queries import DEFAULT_PR_PIPELINE_QUERY, ISSUE_BY_INFO_QUERY
from .models import (
    UNKNOWN_PIPELINE,
    RepoDescriptor,
    TimeWindow,
    TrackedItem,
    make_ref,
    make_synthetic_id,
)
from .protocols import QueryExecutor

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 100
DEFAULT_CONCURRENCY = 5


class BackfillResult(BaseModel):
    """ZenHub identity found for an item discovered through GitHub."""

    old_id: str
    new_id: str
    pipeline: str | None = None


def _to_item(node: GitHubSearchNode) -> TrackedItem | None:
    if node.number == 0 or node.updated_at is None:
        return None
    owner = node.repository.owner.login
    name = node.repository.name
    return TrackedItem(
        id=make_synthetic_id(owner, name, node.number),
        number=node.number,
        title=node.title,
        ref=make_ref(name, node.number),
        pipeline=UNKNOWN_PIPELINE,
        updated_at=node.updated_at,
        repo_name=name,
        repo_owner=owner,
        github_sourced=True,
    )


def apply_backfill(
    items: dict[str, TrackedItem], results: list[BackfillResult]
) -> None:
    """Re-key backfilled items under their ZenHub id and set placement.

    An item whose ZenHub id is already present keeps the existing entry.
    """
    for result in results:
        item = items.pop(result.old_id, None)
        if item is None:
            continue
        if result.new_id in items:
            continue
        items[result.new_id] = item.model_copy(
            update={
                "id": result.new_id,
                "pipeline": result.pipeline or item.pipeline,
            }
        )


class GitHubDiscovery:
    """Finds items GitHub saw updated that ZenHub's scans missed.

    Discovered items get synthetic ids until backfill maps them to ZenHub
    issues. Backfill runs with bounded concurrency and looks up the
    workspace default PR pipeline at most once per pass.
    """

    def __init__(
        self,
        zenhub: QueryExecutor,
        github: QueryExecutor,
        workspace_id: str,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.zenhub = zenhub
        self.github = github
        self.workspace_id = workspace_id
        self.concurrency = concurrency
        self._default_pr_lock = asyncio.Lock()
        self._default_pr_done = False
        self._default_pr_pipeline = ""

    async def search(
        self, repos: list[RepoDescriptor], window: TimeWindow
    ) -> list[TrackedItem]:
        """Search GitHub for issues and PRs updated since the window start.

        Raises:
            TransportError: If any search page fails
        """
        clauses = build_repo_clauses((r.owner_name, r.name) for r in repos)
        updated_after = format_datetime_for_github(window.start)

        found: list[TrackedItem] = []
        for batch in batch_repo_clauses(clauses):
            for qualifier in TYPE_QUALIFIERS:
                query = build_activity_search_query(batch, qualifier, updated_after)
                found.extend(await self._search_query(query))
        return found

    async def _search_query(self, query: str) -> list[TrackedItem]:
        found: list[TrackedItem] = []
        cursor: str | None = None
        while True:
            variables: dict[str, Any] = {"query": query, "first": SEARCH_PAGE_SIZE}
            if cursor is not None:
                variables["after"] = cursor

            data = await self.github.execute(ACTIVITY_SEARCH_QUERY, variables)
            try:
                connection = GitHubSearchConnection.model_validate(
                    data.get("search") or {}
                )
            except ValidationError as e:
                raise TransportError("parsing GitHub search", e)

            for node in connection.nodes:
                item = _to_item(node)
                if item is not None:
                    found.append(item)

            if not connection.page_info.has_next_page:
                break
            cursor = connection.page_info.end_cursor

        logger.debug("GitHub search %r: %d result(s)", query, len(found))
        return found

    async def discover(
        self,
        repos: list[RepoDescriptor],
        window: TimeWindow,
        existing_refs: set[str],
    ) -> list[TrackedItem]:
        """Return GitHub-only items whose ref is not already known."""
        if not repos:
            return []

        seen = set(existing_refs)
        fresh: list[TrackedItem] = []
        for item in await self.search(repos, window):
            if item.ref in seen:
                continue
            seen.add(item.ref)
            fresh.append(item)
        return fresh

    async def default_pr_pipeline(self) -> str:
        """Name of the workspace default PR pipeline, fetched once per pass."""
        async with self._default_pr_lock:
            if not self._default_pr_done:
                self._default_pr_done = True
                self._default_pr_pipeline = await self._fetch_default_pr_pipeline()
        return self._default_pr_pipeline

    async def _fetch_default_pr_pipeline(self) -> str:
        try:
            data = await self.zenhub.execute(
                DEFAULT_PR_PIPELINE_QUERY, {"workspaceId": self.workspace_id}
            )
        except ActivityError as e:
            logger.debug("Default PR pipeline lookup failed: %s", e)
            return ""

        workspace = data.get("workspace") or {}
        nodes = (workspace.get("pipelinesConnection") or {}).get("nodes") or []
        for raw in nodes:
            try:
                node = ZenHubPipelineNode.model_validate(raw)
            except ValidationError:
                continue
            if node.is_default_pr_pipeline:
                return node.name
        return ""

    async def _lookup(
        self, item: TrackedItem, repo_gh_id: int, semaphore: asyncio.Semaphore
    ) -> BackfillResult | None:
        async with semaphore:
            try:
                return await self._lookup_item(item, repo_gh_id)
            except ActivityError as e:
                failure = PartialEnrichmentFailure(f"backfilling {item.ref}", e)
                logger.debug("%s", failure)
                return None

    async def _lookup_item(
        self, item: TrackedItem, repo_gh_id: int
    ) -> BackfillResult | None:
        data = await self.zenhub.execute(
            ISSUE_BY_INFO_QUERY,
            {
                "repositoryGhId": repo_gh_id,
                "issueNumber": item.number,
                "workspaceId": self.workspace_id,
            },
        )
        raw = data.get("issueByInfo")
        if not raw:
            return None
        try:
            found = IssueByInfo.model_validate(raw)
        except ValidationError as e:
            raise TransportError("parsing issueByInfo", e)

        if found.pipeline_issue is not None:
            pipeline: str | None = found.pipeline_issue.pipeline.name
        else:
            pipeline = await self.default_pr_pipeline() or None
        return BackfillResult(old_id=item.id, new_id=found.id, pipeline=pipeline)

    async def backfill(
        self, items: list[TrackedItem], repos: list[RepoDescriptor]
    ) -> list[BackfillResult]:
        """Look up the ZenHub id and placement of each discovered item.

        Items in repositories the workspace does not know are skipped, as
        are items whose lookup fails.
        """
        self._default_pr_done = False
        self._default_pr_pipeline = ""

        gh_ids = {r.full_name.lower(): r.gh_id for r in repos}
        semaphore = asyncio.Semaphore(self.concurrency)

        tasks = []
        looked_up = []
        for item in items:
            gh_id = gh_ids.get(f"{item.repo_owner}/{item.repo_name}".lower())
            if gh_id is None:
                continue
            tasks.append(self._lookup(item, gh_id, semaphore))
            looked_up.append(item)

        results = await asyncio.gather(*tasks, return_exceptions=True)

        found = []
        for item, result in zip(looked_up, results):
            if isinstance(result, Exception):
                failure = PartialEnrichmentFailure(f"backfilling {item.ref}", result)
                logger.debug("%s", failure)
            elif isinstance(result, BackfillResult):
                found.append(result)
        return found
