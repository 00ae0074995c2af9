"""Tests for GitHub timeline item parsing and descriptions."""

from typing import Any

import pytest

from zh_activity.github_client.events import (
    SUPPORTED_TYPENAMES,
    GitHubTimelineOwner,
    parse_timeline_node,
)

CREATED = "2026-02-01T10:00:00Z"


def node(typename: str, **fields: Any) -> dict[str, Any]:
    return {"__typename": typename, "createdAt": CREATED, **fields}


class TestParseTimelineNode:
    """Test parse_timeline_node."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (node("UnlabeledEvent", label={"name": "bug"}), 'removed label "bug"'),
            (node("AssignedEvent", assignee={"login": "sam"}), "assigned @sam"),
            (node("AssignedEvent", assignee={}), "assigned someone"),
            (node("UnassignedEvent", assignee={"login": "sam"}), "unassigned @sam"),
            (node("ClosedEvent"), "closed this issue"),
            (node("ReopenedEvent"), "reopened this issue"),
            (
                node("CrossReferencedEvent", source={"number": 12, "title": "Fix it"}),
                'referenced from #12 "Fix it"',
            ),
            (node("CrossReferencedEvent", source={}), "cross-referenced"),
            (
                node("RenamedTitleEvent", previousTitle="Old", currentTitle="New"),
                'renamed from "Old" to "New"',
            ),
            (
                node("MilestonedEvent", milestoneTitle="v2"),
                'added to milestone "v2"',
            ),
            (
                node("DemilestonedEvent", milestoneTitle="v2"),
                'removed from milestone "v2"',
            ),
            (node("HeadRefDeletedEvent"), "deleted the branch"),
            (node("PullRequestReview", state="APPROVED"), "approved this pull request"),
            (node("PullRequestReview", state="CHANGES_REQUESTED"), "requested changes"),
            (node("PullRequestReview", state="PENDING"), "reviewed this pull request"),
            (
                node("ReviewRequestedEvent", requestedReviewer={"login": "kim"}),
                "requested review from @kim",
            ),
            (node("ReviewRequestedEvent"), "requested a review"),
            (node("HeadRefForcePushedEvent"), "force-pushed the branch"),
            (node("ReadyForReviewEvent"), "marked as ready for review"),
            (node("ConvertToDraftEvent"), "converted to draft"),
            (
                node("IssueTypeAddedEvent", issueType={"name": "Bug"}),
                'set issue type to "Bug"',
            ),
            (
                node(
                    "IssueTypeChangedEvent",
                    issueType={"name": "Task"},
                    prevIssueType={"name": "Bug"},
                ),
                'changed issue type from "Bug" to "Task"',
            ),
            (node("IssueTypeChangedEvent"), "changed issue type"),
            (
                node("IssueTypeRemovedEvent", issueType={"name": "Bug"}),
                'removed issue type "Bug"',
            ),
            (
                node("ParentIssueAddedEvent", parent={"number": 3, "title": "Epic"}),
                'added parent issue #3 "Epic"',
            ),
            (node("ParentIssueRemovedEvent"), "removed parent issue"),
            (
                node("SubIssueAddedEvent", subIssue={"number": 4, "title": "Part"}),
                'added sub-issue #4 "Part"',
            ),
            (
                node("SubIssueRemovedEvent", subIssue={"number": 4, "title": "Part"}),
                'removed sub-issue #4 "Part"',
            ),
        ],
    )
    def test_descriptions(self, raw: dict[str, Any], expected: str) -> None:
        event = parse_timeline_node(raw)
        assert event is not None
        assert event.describe() == expected

    def test_commit_without_message(self) -> None:
        event = parse_timeline_node(
            {"__typename": "PullRequestCommit", "commit": {"message": ""}}
        )
        assert event.describe() == "pushed a commit"
        assert event.occurred_at() is None

    def test_unsupported_typename(self) -> None:
        assert parse_timeline_node(node("SubscribedEvent")) is None
        assert parse_timeline_node({"createdAt": CREATED}) is None

    def test_malformed_node(self) -> None:
        assert parse_timeline_node(node("ClosedEvent", createdAt="yesterday")) is None

    def test_supported_typenames(self) -> None:
        assert "MergedEvent" in SUPPORTED_TYPENAMES
        assert "IssueComment" in SUPPORTED_TYPENAMES
        assert len(SUPPORTED_TYPENAMES) == 26


class TestGitHubTimelineOwner:
    """Test the issue or pull request wrapper around a timeline page."""

    def test_parses_owner(self) -> None:
        owner = GitHubTimelineOwner.model_validate(
            {
                "__typename": "PullRequest",
                "createdAt": CREATED,
                "author": {"login": "opener"},
                "userContentEdits": {"nodes": [{"createdAt": CREATED, "editor": None}]},
                "timelineItems": {
                    "pageInfo": {"hasNextPage": True, "endCursor": "c1"},
                    "nodes": [node("ClosedEvent")],
                },
            }
        )

        assert owner.typename == "PullRequest"
        assert owner.author.login == "opener"
        assert owner.user_content_edits.nodes[0].editor is None
        assert owner.timeline_items.page_info.end_cursor == "c1"
        assert owner.timeline_items.nodes[0]["__typename"] == "ClosedEvent"
