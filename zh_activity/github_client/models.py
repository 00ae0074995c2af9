"""Pydantic models for GitHub search results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .events import GitHubLogin, GitHubPageInfo


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GitHubSearchRepository(_Node):
    name: str = ""
    owner: GitHubLogin = Field(default_factory=GitHubLogin)


class GitHubSearchNode(_Node):
    """Issue or pull request hit. Other result kinds come back empty."""

    number: int = 0
    title: str = ""
    updated_at: datetime | None = Field(None, alias="updatedAt")
    repository: GitHubSearchRepository = Field(default_factory=GitHubSearchRepository)


class GitHubSearchConnection(_Node):
    issue_count: int = Field(0, alias="issueCount")
    page_info: GitHubPageInfo = Field(default_factory=GitHubPageInfo, alias="pageInfo")
    nodes: list[GitHubSearchNode] = Field(default_factory=list)
