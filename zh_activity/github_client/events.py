"""Pydantic models for GitHub GraphQL timeline items.

Each timeline node is tagged by ``__typename``. Every supported tag has its
own model carrying only the fields its description needs, and the models
form a discriminated union parsed through a single ``TypeAdapter``.
API Reference: https://docs.github.com/en/graphql/reference/unions#issuetimelineitems
"""

import logging
from datetime import datetime
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..utils.text import first_line, quote, truncate_body, truncate_title

logger = logging.getLogger(__name__)


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GitHubLogin(_Node):
    login: str = ""


class GitHubNamed(_Node):
    name: str = ""


class GitHubIssueLink(_Node):
    number: int = 0
    title: str = ""


class _TimelineEvent(_Node):
    created_at: datetime | None = Field(None, alias="createdAt")
    actor: GitHubLogin | None = None

    def occurred_at(self) -> datetime | None:
        return self.created_at

    def actor_login(self) -> str:
        return self.actor.login if self.actor else ""

    def describe(self) -> str:
        raise NotImplementedError


class _AuthoredEvent(_TimelineEvent):
    author: GitHubLogin | None = None

    def actor_login(self) -> str:
        return self.author.login if self.author else ""


class LabeledEvent(_TimelineEvent):
    typename: Literal["LabeledEvent"] = Field(alias="__typename")
    label: GitHubNamed = Field(default_factory=GitHubNamed)

    def describe(self) -> str:
        return f"added label {quote(self.label.name)}"


class UnlabeledEvent(_TimelineEvent):
    typename: Literal["UnlabeledEvent"] = Field(alias="__typename")
    label: GitHubNamed = Field(default_factory=GitHubNamed)

    def describe(self) -> str:
        return f"removed label {quote(self.label.name)}"


class AssignedEvent(_TimelineEvent):
    typename: Literal["AssignedEvent"] = Field(alias="__typename")
    assignee: GitHubLogin | None = None

    def describe(self) -> str:
        if self.assignee and self.assignee.login:
            return f"assigned @{self.assignee.login}"
        return "assigned someone"


class UnassignedEvent(_TimelineEvent):
    typename: Literal["UnassignedEvent"] = Field(alias="__typename")
    assignee: GitHubLogin | None = None

    def describe(self) -> str:
        if self.assignee and self.assignee.login:
            return f"unassigned @{self.assignee.login}"
        return "unassigned someone"


class ClosedEvent(_TimelineEvent):
    typename: Literal["ClosedEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "closed this issue"


class ReopenedEvent(_TimelineEvent):
    typename: Literal["ReopenedEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "reopened this issue"


class CrossReferencedEvent(_TimelineEvent):
    typename: Literal["CrossReferencedEvent"] = Field(alias="__typename")
    source: GitHubIssueLink | None = None

    def describe(self) -> str:
        if self.source and self.source.number > 0:
            title = quote(truncate_title(self.source.title))
            return f"referenced from #{self.source.number} {title}"
        return "cross-referenced"


class IssueComment(_AuthoredEvent):
    typename: Literal["IssueComment"] = Field(alias="__typename")
    body: str = ""

    def describe(self) -> str:
        return f"commented: {truncate_body(self.body)}"


class RenamedTitleEvent(_TimelineEvent):
    typename: Literal["RenamedTitleEvent"] = Field(alias="__typename")
    previous_title: str = Field("", alias="previousTitle")
    current_title: str = Field("", alias="currentTitle")

    def describe(self) -> str:
        previous = quote(truncate_title(self.previous_title))
        current = quote(truncate_title(self.current_title))
        return f"renamed from {previous} to {current}"


class MilestonedEvent(_TimelineEvent):
    typename: Literal["MilestonedEvent"] = Field(alias="__typename")
    milestone_title: str = Field("", alias="milestoneTitle")

    def describe(self) -> str:
        return f"added to milestone {quote(self.milestone_title)}"


class DemilestonedEvent(_TimelineEvent):
    typename: Literal["DemilestonedEvent"] = Field(alias="__typename")
    milestone_title: str = Field("", alias="milestoneTitle")

    def describe(self) -> str:
        return f"removed from milestone {quote(self.milestone_title)}"


class MergedEvent(_TimelineEvent):
    typename: Literal["MergedEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "merged this pull request"


class HeadRefDeletedEvent(_TimelineEvent):
    typename: Literal["HeadRefDeletedEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "deleted the branch"


class GitHubCommitAuthor(_Node):
    user: GitHubLogin | None = None


class GitHubCommit(_Node):
    committed_date: datetime | None = Field(None, alias="committedDate")
    message: str = ""
    author: GitHubCommitAuthor | None = None


class PullRequestCommit(_Node):
    """A commit pushed to a pull request.

    Unlike the other timeline items it has no ``createdAt`` or ``actor``;
    both live under ``commit``.
    """

    typename: Literal["PullRequestCommit"] = Field(alias="__typename")
    commit: GitHubCommit | None = None

    def occurred_at(self) -> datetime | None:
        return self.commit.committed_date if self.commit else None

    def actor_login(self) -> str:
        if self.commit and self.commit.author and self.commit.author.user:
            return self.commit.author.user.login
        return ""

    def describe(self) -> str:
        message = first_line(self.commit.message) if self.commit else ""
        if message:
            return f"pushed commit: {truncate_body(message)}"
        return "pushed a commit"


REVIEW_STATES = {
    "APPROVED": "approved this pull request",
    "CHANGES_REQUESTED": "requested changes",
    "COMMENTED": "reviewed (commented)",
    "DISMISSED": "review dismissed",
}


class PullRequestReview(_AuthoredEvent):
    typename: Literal["PullRequestReview"] = Field(alias="__typename")
    state: str = ""

    def describe(self) -> str:
        return REVIEW_STATES.get(self.state.upper(), "reviewed this pull request")


class ReviewRequestedEvent(_TimelineEvent):
    typename: Literal["ReviewRequestedEvent"] = Field(alias="__typename")
    requested_reviewer: GitHubLogin | None = Field(None, alias="requestedReviewer")

    def describe(self) -> str:
        if self.requested_reviewer and self.requested_reviewer.login:
            return f"requested review from @{self.requested_reviewer.login}"
        return "requested a review"


class HeadRefForcePushedEvent(_TimelineEvent):
    typename: Literal["HeadRefForcePushedEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "force-pushed the branch"


class ReadyForReviewEvent(_TimelineEvent):
    typename: Literal["ReadyForReviewEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "marked as ready for review"


class ConvertToDraftEvent(_TimelineEvent):
    typename: Literal["ConvertToDraftEvent"] = Field(alias="__typename")

    def describe(self) -> str:
        return "converted to draft"


class IssueTypeAddedEvent(_TimelineEvent):
    typename: Literal["IssueTypeAddedEvent"] = Field(alias="__typename")
    issue_type: GitHubNamed | None = Field(None, alias="issueType")

    def describe(self) -> str:
        if self.issue_type and self.issue_type.name:
            return f"set issue type to {quote(self.issue_type.name)}"
        return "set issue type"


class IssueTypeChangedEvent(_TimelineEvent):
    typename: Literal["IssueTypeChangedEvent"] = Field(alias="__typename")
    issue_type: GitHubNamed | None = Field(None, alias="issueType")
    prev_issue_type: GitHubNamed | None = Field(None, alias="prevIssueType")

    def describe(self) -> str:
        previous = self.prev_issue_type.name if self.prev_issue_type else ""
        current = self.issue_type.name if self.issue_type else ""
        if previous and current:
            return f"changed issue type from {quote(previous)} to {quote(current)}"
        return "changed issue type"


class IssueTypeRemovedEvent(_TimelineEvent):
    typename: Literal["IssueTypeRemovedEvent"] = Field(alias="__typename")
    issue_type: GitHubNamed | None = Field(None, alias="issueType")

    def describe(self) -> str:
        if self.issue_type and self.issue_type.name:
            return f"removed issue type {quote(self.issue_type.name)}"
        return "removed issue type"


def _describe_link(verb: str, noun: str, link: GitHubIssueLink | None) -> str:
    if link and link.number > 0:
        return f"{verb} {noun} #{link.number} {quote(truncate_title(link.title))}"
    return f"{verb} {noun}"


class ParentIssueAddedEvent(_TimelineEvent):
    typename: Literal["ParentIssueAddedEvent"] = Field(alias="__typename")
    parent: GitHubIssueLink | None = None

    def describe(self) -> str:
        return _describe_link("added", "parent issue", self.parent)


class ParentIssueRemovedEvent(_TimelineEvent):
    typename: Literal["ParentIssueRemovedEvent"] = Field(alias="__typename")
    parent: GitHubIssueLink | None = None

    def describe(self) -> str:
        return _describe_link("removed", "parent issue", self.parent)


class SubIssueAddedEvent(_TimelineEvent):
    typename: Literal["SubIssueAddedEvent"] = Field(alias="__typename")
    sub_issue: GitHubIssueLink | None = Field(None, alias="subIssue")

    def describe(self) -> str:
        return _describe_link("added", "sub-issue", self.sub_issue)


class SubIssueRemovedEvent(_TimelineEvent):
    typename: Literal["SubIssueRemovedEvent"] = Field(alias="__typename")
    sub_issue: GitHubIssueLink | None = Field(None, alias="subIssue")

    def describe(self) -> str:
        return _describe_link("removed", "sub-issue", self.sub_issue)


GitHubTimelineEvent = Annotated[
    Union[
        LabeledEvent,
        UnlabeledEvent,
        AssignedEvent,
        UnassignedEvent,
        ClosedEvent,
        ReopenedEvent,
        CrossReferencedEvent,
        IssueComment,
        RenamedTitleEvent,
        MilestonedEvent,
        DemilestonedEvent,
        MergedEvent,
        HeadRefDeletedEvent,
        PullRequestCommit,
        PullRequestReview,
        ReviewRequestedEvent,
        HeadRefForcePushedEvent,
        ReadyForReviewEvent,
        ConvertToDraftEvent,
        IssueTypeAddedEvent,
        IssueTypeChangedEvent,
        IssueTypeRemovedEvent,
        ParentIssueAddedEvent,
        ParentIssueRemovedEvent,
        SubIssueAddedEvent,
        SubIssueRemovedEvent,
    ],
    Field(discriminator="typename"),
]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(GitHubTimelineEvent)

SUPPORTED_TYPENAMES = frozenset(
    cls.__name__ for cls in get_args(get_args(GitHubTimelineEvent)[0])
)


def parse_timeline_node(node: dict[str, Any]) -> Any | None:
    """Parse one raw timeline node into its tagged model.

    Returns None for tags we do not describe, and for nodes that fail
    validation.
    """
    if node.get("__typename") not in SUPPORTED_TYPENAMES:
        return None
    try:
        return _EVENT_ADAPTER.validate_python(node)
    except ValidationError as e:
        logger.debug("Skipping malformed %s node: %s", node.get("__typename"), e)
        return None


class GitHubContentEdit(_Node):
    created_at: datetime | None = Field(None, alias="createdAt")
    editor: GitHubLogin | None = None


class GitHubContentEdits(_Node):
    nodes: list[GitHubContentEdit] = Field(default_factory=list)


class GitHubPageInfo(_Node):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: str | None = Field(None, alias="endCursor")


class GitHubTimelineItems(_Node):
    page_info: GitHubPageInfo = Field(default_factory=GitHubPageInfo, alias="pageInfo")
    nodes: list[dict[str, Any]] = Field(default_factory=list)


class GitHubTimelineOwner(_Node):
    """The issue or pull request a timeline page belongs to."""

    typename: str = Field("", alias="__typename")
    created_at: datetime | None = Field(None, alias="createdAt")
    author: GitHubLogin | None = None
    user_content_edits: GitHubContentEdits | None = Field(
        None, alias="userContentEdits"
    )
    timeline_items: GitHubTimelineItems = Field(
        default_factory=GitHubTimelineItems, alias="timelineItems"
    )
