"""Workspace pipeline and repository lookup with cache-backed resolution."""

import logging
from typing import Any

from pydantic import ValidationError

from ..activity.models import PipelineDescriptor, RepoDescriptor
from ..activity.protocols import Cache, QueryExecutor
from ..errors import AmbiguousMatch, NotFound, TransportError
from ..storage.cache import scoped_key
from .models import PageInfo
from .queries import LIST_PIPELINES_QUERY, LIST_REPOS_QUERY

logger = logging.getLogger(__name__)

REPO_PAGE_SIZE = 100


def match_pipeline(
    pipelines: list[PipelineDescriptor], identifier: str
) -> PipelineDescriptor | None:
    """Match by exact id, then exact name, then unique substring (case-insensitive)."""
    lowered = identifier.lower()

    for pipeline in pipelines:
        if pipeline.id == identifier:
            return pipeline

    for pipeline in pipelines:
        if pipeline.name.lower() == lowered:
            return pipeline

    matches = [p for p in pipelines if lowered in p.name.lower()]
    if len(matches) == 1:
        return matches[0]
    return None


def check_pipeline_ambiguous(
    pipelines: list[PipelineDescriptor], identifier: str
) -> None:
    """Raise AmbiguousMatch if ``identifier`` is a substring of several names."""
    lowered = identifier.lower()
    matches = [p for p in pipelines if lowered in p.name.lower()]
    if len(matches) > 1:
        listing = "".join(f"\n  - {p.name} [{p.id}]" for p in matches)
        raise AmbiguousMatch(
            f"pipeline {identifier!r} is ambiguous, matches {len(matches)} "
            f"pipelines:{listing}\n\nUse a more specific name or the pipeline ID."
        )


def lookup_repo(repos: list[RepoDescriptor], identifier: str) -> RepoDescriptor:
    """Find a repository by ``name`` or ``owner/name`` (case-insensitive).

    Raises:
        AmbiguousMatch: If a bare name exists under several owners
        NotFound: If nothing matches
    """
    not_found = NotFound(f"repository {identifier!r} not found in workspace")

    if "/" in identifier:
        owner, name = identifier.split("/", 1)
        for repo in repos:
            if (
                repo.owner_name.lower() == owner.lower()
                and repo.name.lower() == name.lower()
            ):
                return repo
        raise not_found

    matches = [r for r in repos if r.name.lower() == identifier.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        listing = "".join(f"\n  - {r.full_name}" for r in matches)
        raise AmbiguousMatch(
            f"repository {identifier!r} is ambiguous, matches {len(matches)} "
            f"repos:{listing}\n\nUse the full owner/repo format."
        )
    raise not_found


class WorkspaceResolver:
    """Resolves pipeline and repository identifiers for one workspace.

    Lists are read from the cache first. When an identifier is not found in
    cached data the list is refreshed from the API and the lookup retried.
    """

    def __init__(self, client: QueryExecutor, workspace_id: str, cache: Cache):
        self.client = client
        self.workspace_id = workspace_id
        self.cache = cache

    @property
    def pipeline_cache_key(self) -> str:
        return scoped_key("pipelines", self.workspace_id)

    @property
    def repo_cache_key(self) -> str:
        return scoped_key("repos", self.workspace_id)

    async def fetch_pipelines(self) -> list[PipelineDescriptor]:
        """Fetch pipelines from the API and refresh the cache."""
        data = await self.client.execute(
            LIST_PIPELINES_QUERY, {"workspaceId": self.workspace_id}
        )
        try:
            nodes = _dig(data, "workspace", "pipelinesConnection", "nodes") or []
            pipelines = [PipelineDescriptor.model_validate(node) for node in nodes]
        except ValidationError as e:
            raise TransportError("parsing pipelines response", e)

        self.cache.set(
            self.pipeline_cache_key, [p.model_dump() for p in pipelines]
        )
        return pipelines

    async def get_pipelines(self) -> list[PipelineDescriptor]:
        """Return workspace pipelines in display order, cached when possible."""
        cached = self._cached(self.pipeline_cache_key, PipelineDescriptor)
        if cached is not None:
            return cached
        return await self.fetch_pipelines()

    async def fetch_repos(self) -> list[RepoDescriptor]:
        """Fetch all workspace repositories from the API and refresh the cache."""
        repos: list[RepoDescriptor] = []
        cursor: str | None = None

        while True:
            variables: dict[str, Any] = {
                "workspaceId": self.workspace_id,
                "first": REPO_PAGE_SIZE,
            }
            if cursor is not None:
                variables["after"] = cursor

            data = await self.client.execute(LIST_REPOS_QUERY, variables)
            try:
                connection = _dig(data, "workspace", "repositoriesConnection") or {}
                repos.extend(
                    RepoDescriptor.model_validate(node)
                    for node in connection.get("nodes") or []
                )
                page_info = PageInfo.model_validate(connection.get("pageInfo") or {})
            except ValidationError as e:
                raise TransportError("parsing repos response", e)

            if not page_info.has_next_page:
                break
            cursor = page_info.end_cursor

        self.cache.set(
            self.repo_cache_key, [r.model_dump(by_alias=True) for r in repos]
        )
        return repos

    async def get_repos(self) -> list[RepoDescriptor]:
        """Return workspace repositories, cached when possible."""
        cached = self._cached(self.repo_cache_key, RepoDescriptor)
        if cached is not None:
            return cached
        return await self.fetch_repos()

    async def resolve_pipeline(self, identifier: str) -> PipelineDescriptor:
        """Resolve a pipeline id or (partial) name.

        Raises:
            AmbiguousMatch: If several pipelines match
            NotFound: If no pipeline matches after a refresh
        """
        cached = self._cached(self.pipeline_cache_key, PipelineDescriptor)
        if cached is not None:
            match = match_pipeline(cached, identifier)
            if match is not None:
                return match
            # Still ambiguous after a refresh, so fail before hitting the API
            check_pipeline_ambiguous(cached, identifier)
            logger.debug("Pipeline %r not in cache, refreshing", identifier)
            self.cache.clear(self.pipeline_cache_key)

        pipelines = await self.fetch_pipelines()
        match = match_pipeline(pipelines, identifier)
        if match is not None:
            return match
        check_pipeline_ambiguous(pipelines, identifier)
        raise NotFound(f"pipeline {identifier!r} not found")

    async def resolve_repo(self, identifier: str) -> RepoDescriptor:
        """Resolve a repository by ``name`` or ``owner/name``."""
        cached = self._cached(self.repo_cache_key, RepoDescriptor)
        if cached is not None:
            try:
                return lookup_repo(cached, identifier)
            except NotFound:
                logger.debug("Repo %r not in cache, refreshing", identifier)
                self.cache.clear(self.repo_cache_key)

        return lookup_repo(await self.fetch_repos(), identifier)

    def _cached(self, key: str, model: Any) -> list[Any] | None:
        value, found = self.cache.get(key)
        if not found:
            return None
        try:
            return [model.model_validate(entry) for entry in value]
        except (ValidationError, TypeError) as e:
            logger.debug("Discarding malformed cache entry %s: %s", key, e)
            self.cache.clear(key)
            return None


def _dig(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None where a level is missing or null."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data
