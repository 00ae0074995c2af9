"""Per-issue timeline fetching from ZenHub and GitHub."""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..errors import NotFound, TransportError
from ..github_client.events import GitHubTimelineOwner
from ..github_client.queries import TIMELINE_QUERY
from ..zenhub_client.models import ZenHubConnectionNode, ZenHubTimelineIssue
from ..zenhub_client.queries import (
    PR_CONNECTIONS_QUERY,
    TIMELINE_BY_INFO_QUERY,
    TIMELINE_BY_NODE_QUERY,
)
from .models import ActivityEvent, EventSource, make_ref
from .normalize import normalize_github_node, normalize_zenhub_item
from .protocols import QueryExecutor

logger = logging.getLogger(__name__)

ZENHUB_TIMELINE_PAGE_SIZE = 50
GITHUB_TIMELINE_PAGE_SIZE = 100


class IssueHeader(BaseModel):
    """Identity of the issue a ZenHub timeline belongs to."""

    number: int = 0
    title: str = ""
    repo_name: str = ""
    repo_owner: str = ""

    @property
    def ref(self) -> str:
        return make_ref(self.repo_name, self.number)


class GitHubTimeline(BaseModel):
    """Normalized GitHub timeline plus creation metadata."""

    events: list[ActivityEvent] = Field(default_factory=list)
    is_pr: bool = False
    created_at: datetime | None = None
    created_by: str = ""


async def _fetch_zenhub_timeline(
    client: QueryExecutor,
    query: str,
    variables: dict[str, Any],
    root: str,
    label: str,
) -> tuple[IssueHeader, list[ActivityEvent]]:
    header = IssueHeader()
    events: list[ActivityEvent] = []
    cursor: str | None = None

    while True:
        page_vars = dict(variables, first=ZENHUB_TIMELINE_PAGE_SIZE)
        if cursor is not None:
            page_vars["after"] = cursor

        data = await client.execute(query, page_vars)
        raw = data.get(root)
        if not raw:
            raise NotFound(f"issue {label} not found")
        try:
            issue = ZenHubTimelineIssue.model_validate(raw)
        except ValidationError as e:
            raise TransportError("parsing issue timeline", e)

        header = IssueHeader(
            number=issue.number,
            title=issue.title,
            repo_name=issue.repository.name,
            repo_owner=issue.repository.owner.login,
        )
        for item in issue.timeline_items.nodes:
            event = normalize_zenhub_item(item)
            if event is not None:
                events.append(event)

        page_info = issue.timeline_items.page_info
        if not page_info.has_next_page:
            break
        cursor = page_info.end_cursor

    return header, events


async def fetch_zenhub_timeline_by_node(
    client: QueryExecutor, node_id: str
) -> tuple[IssueHeader, list[ActivityEvent]]:
    """Fetch the full ZenHub timeline of an issue by its node id.

    Raises:
        NotFound: If the node does not exist
        TransportError: On fetch or parse failures
    """
    return await _fetch_zenhub_timeline(
        client, TIMELINE_BY_NODE_QUERY, {"id": node_id}, "node", repr(node_id)
    )


async def fetch_zenhub_timeline_by_info(
    client: QueryExecutor, repo_gh_id: int, number: int
) -> tuple[IssueHeader, list[ActivityEvent]]:
    """Fetch the full ZenHub timeline of an issue by GitHub repo id and number."""
    return await _fetch_zenhub_timeline(
        client,
        TIMELINE_BY_INFO_QUERY,
        {"repositoryGhId": repo_gh_id, "issueNumber": number},
        "issueByInfo",
        f"#{number}",
    )


async def fetch_github_timeline(
    client: QueryExecutor, owner: str, repo: str, number: int
) -> GitHubTimeline:
    """Fetch and normalize the GitHub timeline of an issue or pull request.

    The first page also yields whether the item is a pull request, its
    creation time and author, and an "edited description" event for the
    latest description edit.

    Raises:
        NotFound: If the repository or item does not exist
        TransportError: On fetch or parse failures
    """
    result = GitHubTimeline()
    cursor: str | None = None

    while True:
        variables: dict[str, Any] = {
            "owner": owner,
            "repo": repo,
            "number": number,
            "first": GITHUB_TIMELINE_PAGE_SIZE,
        }
        if cursor is not None:
            variables["after"] = cursor

        data = await client.execute(TIMELINE_QUERY, variables)
        repository = data.get("repository")
        if not repository:
            raise NotFound(f"repository {owner}/{repo} not found")
        raw = repository.get("issueOrPullRequest")
        if not raw:
            raise NotFound(f"{owner}/{repo}#{number} not found")
        try:
            owner_node = GitHubTimelineOwner.model_validate(raw)
        except ValidationError as e:
            raise TransportError("parsing GitHub timeline", e)

        if cursor is None:
            result.is_pr = owner_node.typename == "PullRequest"
            result.created_at = owner_node.created_at
            result.created_by = owner_node.author.login if owner_node.author else ""
            edits = owner_node.user_content_edits
            for edit in edits.nodes if edits else []:
                if edit.created_at is None:
                    continue
                result.events.append(
                    ActivityEvent(
                        time=edit.created_at,
                        source=EventSource.GITHUB,
                        description="edited description",
                        actor=edit.editor.login if edit.editor else None,
                    )
                )

        for node in owner_node.timeline_items.nodes:
            event = normalize_github_node(node)
            if event is not None:
                result.events.append(event)

        page_info = owner_node.timeline_items.page_info
        if not page_info.has_next_page:
            break
        cursor = page_info.end_cursor

    return result


async def fetch_pr_connection(client: QueryExecutor, node_id: str) -> str | None:
    """Return ``repo#number`` of the issue a PR is connected to, if any."""
    data = await client.execute(PR_CONNECTIONS_QUERY, {"id": node_id})
    node = data.get("node")
    if not node:
        return None
    nodes = (node.get("connections") or {}).get("nodes") or []
    if not nodes:
        return None
    try:
        connection = ZenHubConnectionNode.model_validate(nodes[0])
    except ValidationError as e:
        raise TransportError("parsing PR connections", e)
    if not connection.repository.name or connection.number <= 0:
        return None
    return make_ref(connection.repository.name, connection.number)
