"""Pydantic models for ZenHub GraphQL response structures.

API Reference: https://developers.zenhub.com/graphql-api-docs
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PageInfo(_Node):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: str | None = Field(None, alias="endCursor")


class ZenHubRepository(_Node):
    name: str = ""
    owner_name: str = Field("", alias="ownerName")


class ZenHubLogin(_Node):
    login: str = ""


class ZenHubAssignees(_Node):
    nodes: list[ZenHubLogin] = Field(default_factory=list)


class ZenHubPipelineName(_Node):
    name: str = ""


class ZenHubPipelineIssue(_Node):
    pipeline: ZenHubPipelineName = Field(default_factory=ZenHubPipelineName)


class ZenHubIssueNode(_Node):
    """Issue as returned by pipeline and closed-issue searches."""

    id: str
    number: int
    title: str = ""
    state: str | None = None
    updated_at: datetime | None = Field(None, alias="updatedAt")
    gh_updated_at: datetime | None = Field(None, alias="ghUpdatedAt")
    repository: ZenHubRepository = Field(default_factory=ZenHubRepository)
    assignees: ZenHubAssignees = Field(default_factory=ZenHubAssignees)
    pipeline_issue: ZenHubPipelineIssue | None = Field(None, alias="pipelineIssue")

    @field_validator("updated_at", "gh_updated_at", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value


class ZenHubIssueConnection(_Node):
    total_count: int = Field(0, alias="totalCount")
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    nodes: list[ZenHubIssueNode] = Field(default_factory=list)


class ZenHubTimelineItem(_Node):
    """Raw ZenHub timeline item: a dot-namespaced key and a free-form payload."""

    id: str = ""
    key: str = ""
    data: dict[str, Any] | None = None
    created_at: str = Field("", alias="createdAt")


class ZenHubTimelineConnection(_Node):
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    nodes: list[ZenHubTimelineItem] = Field(default_factory=list)


class ZenHubOwner(_Node):
    login: str = ""


class ZenHubTimelineRepository(_Node):
    name: str = ""
    owner: ZenHubOwner = Field(default_factory=ZenHubOwner)


class ZenHubTimelineIssue(_Node):
    """Issue header plus one page of its ZenHub timeline."""

    id: str = ""
    number: int = 0
    title: str = ""
    repository: ZenHubTimelineRepository = Field(
        default_factory=ZenHubTimelineRepository
    )
    timeline_items: ZenHubTimelineConnection = Field(
        default_factory=ZenHubTimelineConnection, alias="timelineItems"
    )


class IssueByInfo(_Node):
    """Result of looking an issue up by GitHub repo id and number."""

    id: str
    pipeline_issue: ZenHubPipelineIssue | None = Field(None, alias="pipelineIssue")


class ZenHubPipelineNode(_Node):
    id: str = ""
    name: str = ""
    is_default_pr_pipeline: bool = Field(False, alias="isDefaultPRPipeline")


class ZenHubConnectionNode(_Node):
    number: int = 0
    repository: ZenHubRepository = Field(default_factory=ZenHubRepository)
