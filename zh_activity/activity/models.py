"""Pydantic models for aggregated workspace activity.

These models are the unified view produced by the aggregation engine. Raw
ZenHub and GitHub payloads are parsed by the models in
``zenhub_client.models`` and ``github_client.events`` and normalized into
the types below.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..errors import InvalidIssueRef, InvalidTimeFormat

GITHUB_ID_PREFIX = "gh:"
CLOSED_PIPELINE = "Closed"
UNKNOWN_PIPELINE = "Unknown"


class EventSource(str, Enum):
    """Backend an event was reported by."""

    ZENHUB = "ZenHub"
    GITHUB = "GitHub"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeWindow(BaseModel):
    """Absolute ``[start, end]`` range an activity query covers."""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Start of the window (inclusive)")
    end: datetime = Field(..., description="End of the window (inclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.start > self.end:
            raise InvalidTimeFormat(
                f"--from ({self.start.isoformat()}) must not be after "
                f"--to ({self.end.isoformat()})"
            )
        return self

    def contains(self, moment: datetime | None) -> bool:
        """Return True if ``moment`` falls within the window, bounds included."""
        if moment is None:
            return False
        return self.start <= moment <= self.end


class ActivityEvent(_CamelModel):
    """A single normalized timeline event from either backend."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    time: datetime = Field(..., description="When the event happened")
    source: EventSource = Field(..., description="Backend that reported it")
    description: str = Field(..., description="One-line human description")
    actor: str | None = Field(None, description="Login of the acting user")
    raw: dict[str, Any] | None = Field(
        None, description="Original payload, kept for JSON output"
    )


class PipelineDescriptor(BaseModel):
    """ZenHub pipeline identity, as cached per workspace."""

    id: str
    name: str


class RepoDescriptor(_CamelModel):
    """ZenHub workspace repository, as cached per workspace."""

    id: str
    gh_id: int = Field(..., description="GitHub database id of the repository")
    name: str
    owner_name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner_name}/{self.name}"


class TrackedItem(_CamelModel):
    """An issue or pull request seen during one aggregation run.

    ``id`` is the ZenHub node id, or a synthetic ``gh:owner/repo#n`` id for
    items discovered only through GitHub search until they are backfilled.
    ``ref`` (``repo#number``) identifies the same item across both backends.
    """

    id: str
    number: int
    title: str
    ref: str
    pipeline: str = Field(UNKNOWN_PIPELINE, description="Current placement")
    updated_at: datetime = Field(
        ..., description="Display time: latest of the ZenHub and GitHub times"
    )
    gh_updated_at: datetime | None = Field(
        None, description="GitHub-side last update, when ZenHub reports it"
    )
    assignees: list[str] = Field(default_factory=list)
    repo_name: str
    repo_owner: str
    github_sourced: bool = Field(
        False, description="Discovered only through GitHub search"
    )
    is_pr: bool = False
    connected_issue: str | None = None
    events: list[ActivityEvent] = Field(default_factory=list)

    @property
    def has_synthetic_id(self) -> bool:
        return self.id.startswith(GITHUB_ID_PREFIX)


def make_ref(repo_name: str, number: int) -> str:
    """Build the cross-backend natural key for an item."""
    return f"{repo_name}#{number}"


def make_synthetic_id(owner: str, repo_name: str, number: int) -> str:
    """Build the placeholder id for a GitHub-only item."""
    return f"{GITHUB_ID_PREFIX}{owner}/{repo_name}#{number}"


def dedupe_logins(logins: list[str]) -> list[str]:
    """Drop repeated logins, keeping first-seen order."""
    return list(dict.fromkeys(login for login in logins if login))


class ActivitySummary(_CamelModel):
    issue_count: int
    pipeline_count: int


class ActivityResult(_CamelModel):
    """Fully assembled aggregation result handed to the renderer."""

    start: datetime = Field(..., alias="from")
    end: datetime = Field(..., alias="to")
    issues: list[TrackedItem] = Field(default_factory=list)
    summary: ActivitySummary
    pipeline_order: list[str] = Field(
        default_factory=list,
        exclude=True,
        description="Canonical workspace pipeline order for grouping",
    )
    warnings: list[str] = Field(default_factory=list, exclude=True)
    detail: bool = Field(False, exclude=True)
    show_source: bool = Field(False, exclude=True)


def count_pipelines(items: list[TrackedItem]) -> int:
    """Count distinct non-empty placements among ``items``."""
    return len({item.pipeline for item in items if item.pipeline})


ISSUE_REF_PATTERN = re.compile(
    r"^(?:(?P<owner>[^/#\s]+)/)?(?P<repo>[^/#\s]+)#(?P<number>\d+)$"
)


class IssueRef(BaseModel):
    """Parsed ``repo#number``, ``owner/repo#number`` or ZenHub node id."""

    owner: str | None = None
    repo: str | None = None
    number: int | None = None
    node_id: str | None = None

    @property
    def repo_identifier(self) -> str:
        if self.owner:
            return f"{self.owner}/{self.repo}"
        return self.repo or ""


def parse_issue_ref(value: str) -> IssueRef:
    """Parse an issue reference given on the command line.

    Example:
        >>> parse_issue_ref("acme/api#12")
        IssueRef(owner="acme", repo="api", number=12, node_id=None)
    """
    value = value.strip()
    match = ISSUE_REF_PATTERN.match(value)
    if match:
        return IssueRef(
            owner=match.group("owner"),
            repo=match.group("repo"),
            number=int(match.group("number")),
        )
    if value and "#" not in value and "/" not in value and " " not in value:
        return IssueRef(node_id=value)
    raise InvalidIssueRef(
        f"invalid issue reference {value!r}, "
        "expected repo#number or owner/repo#number"
    )
