"""ZenHub pipeline and closed-issue scanning."""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from ..errors import TransportError
from ..zenhub_client.models import ZenHubIssueConnection, ZenHubIssueNode
from ..zenhub_client.queries import CLOSED_ACTIVITY_QUERY, PIPELINE_ACTIVITY_QUERY
from .models import (
    CLOSED_PIPELINE,
    PipelineDescriptor,
    TimeWindow,
    TrackedItem,
    dedupe_logins,
    make_ref,
)
from .protocols import QueryExecutor

logger = logging.getLogger(__name__)

PIPELINE_PAGE_SIZE = 100
CLOSED_FETCH_SIZE = 100


def is_past_cutoff(node: ZenHubIssueNode, window: TimeWindow) -> bool:
    """True when both of the node's timestamps are before the window start.

    A missing ZenHub timestamp never counts as past the cutoff.
    """
    if node.updated_at is None or node.updated_at >= window.start:
        return False
    return node.gh_updated_at is None or node.gh_updated_at < window.start


def in_window(node: ZenHubIssueNode, window: TimeWindow) -> bool:
    """True when either the ZenHub or the GitHub timestamp is in the window."""
    return window.contains(node.updated_at) or window.contains(node.gh_updated_at)


def to_tracked_item(node: ZenHubIssueNode, pipeline: str) -> TrackedItem:
    """Build a TrackedItem from a search node, using the later timestamp."""
    candidates = [t for t in (node.updated_at, node.gh_updated_at) if t is not None]
    return TrackedItem(
        id=node.id,
        number=node.number,
        title=node.title,
        ref=make_ref(node.repository.name, node.number),
        pipeline=pipeline,
        updated_at=max(candidates),
        gh_updated_at=node.gh_updated_at,
        assignees=dedupe_logins([a.login for a in node.assignees.nodes]),
        repo_name=node.repository.name,
        repo_owner=node.repository.owner_name,
    )


def merge_first_wins(
    target: dict[str, TrackedItem], items: list[TrackedItem]
) -> None:
    """Add ``items`` to ``target`` by id, keeping entries already present."""
    for item in items:
        target.setdefault(item.id, item)


class ActivityScanner:
    """Scans a ZenHub workspace for items updated within a time window."""

    def __init__(self, client: QueryExecutor, workspace_id: str):
        """Initialize scanner.

        Args:
            client: ZenHub query executor
            workspace_id: ZenHub workspace id
        """
        self.client = client
        self.workspace_id = workspace_id

    async def scan_pipeline(
        self, pipeline: PipelineDescriptor, window: TimeWindow
    ) -> list[TrackedItem]:
        """Collect items in one pipeline updated within ``window``.

        Pages are requested newest first. Once a page contains an item whose
        timestamps are both before the window start, no further pages are
        fetched. Items further down that same page are still examined.

        Raises:
            TransportError: If a page cannot be fetched or parsed
        """
        items: list[TrackedItem] = []
        cursor: str | None = None
        page = 0

        while True:
            variables: dict[str, Any] = {
                "pipelineId": pipeline.id,
                "workspaceId": self.workspace_id,
                "first": PIPELINE_PAGE_SIZE,
            }
            if cursor is not None:
                variables["after"] = cursor

            data = await self.client.execute(PIPELINE_ACTIVITY_QUERY, variables)

            try:
                connection = ZenHubIssueConnection.model_validate(
                    data.get("searchIssuesByPipeline") or {}
                )
            except ValidationError as e:
                raise TransportError("parsing pipeline activity", e)

            page += 1
            past_cutoff = False
            for node in connection.nodes:
                if is_past_cutoff(node, window):
                    past_cutoff = True
                    continue
                if not in_window(node, window):
                    continue
                placement = pipeline.name
                if node.pipeline_issue is not None:
                    placement = node.pipeline_issue.pipeline.name
                items.append(to_tracked_item(node, placement))

            if past_cutoff:
                logger.debug(
                    "Pipeline %s: reached window start on page %d", pipeline.name, page
                )
                break
            if not connection.page_info.has_next_page:
                break
            cursor = connection.page_info.end_cursor

        logger.debug("Pipeline %s: %d item(s) in window", pipeline.name, len(items))
        return items

    async def scan_closed(self, window: TimeWindow) -> list[TrackedItem]:
        """Collect recently closed items updated within ``window``.

        Only the first page is fetched and every node on it is examined.

        Raises:
            TransportError: If the page cannot be fetched or parsed
        """
        variables = {"workspaceId": self.workspace_id, "first": CLOSED_FETCH_SIZE}
        data = await self.client.execute(CLOSED_ACTIVITY_QUERY, variables)

        try:
            connection = ZenHubIssueConnection.model_validate(
                data.get("searchClosedIssues") or {}
            )
        except ValidationError as e:
            raise TransportError("parsing closed issues activity", e)

        return [
            to_tracked_item(node, CLOSED_PIPELINE)
            for node in connection.nodes
            if in_window(node, window)
        ]

    async def reconcile(
        self, pipelines: list[PipelineDescriptor], window: TimeWindow
    ) -> dict[str, TrackedItem]:
        """Scan every pipeline and the closed items concurrently.

        Results are merged by id in pipeline order with the closed items
        last; the first occurrence of an id wins. Any scan failure aborts
        the whole reconcile.
        """
        tasks = [
            asyncio.create_task(self.scan_pipeline(pipeline, window))
            for pipeline in pipelines
        ]
        tasks.append(asyncio.create_task(self.scan_closed(window)))
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        merged: dict[str, TrackedItem] = {}
        for items in results:
            merge_first_wins(merged, items)
        return merged
