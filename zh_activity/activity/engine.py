"""Activity aggregation across ZenHub pipelines and GitHub."""

import logging
from datetime import datetime

from pydantic import BaseModel, Field

from ..errors import ActivityError
from ..zenhub_client.workspace import WorkspaceResolver
from .details import DetailFetcher
from .discovery import GitHubDiscovery, apply_backfill
from .models import (
    ActivityResult,
    ActivitySummary,
    PipelineDescriptor,
    TimeWindow,
    TrackedItem,
    count_pipelines,
)
from .protocols import QueryExecutor
from .scanner import ActivityScanner
from .window import DEFAULT_FROM, resolve_window

logger = logging.getLogger(__name__)

GITHUB_NOT_CONFIGURED = "--github flag ignored, GitHub access not configured"


class ActivityOptions(BaseModel):
    """Options for one aggregation run."""

    from_expr: str = Field(DEFAULT_FROM, description="Start of the window")
    to_expr: str = Field("", description="End of the window, empty for now")
    include_github: bool = Field(
        False, description="Also search GitHub and merge GitHub timelines"
    )
    detail: bool = Field(False, description="Fetch per-item event timelines")
    pipeline: str | None = Field(None, description="Restrict to one pipeline")
    repo: str | None = Field(None, description="Restrict to one repository")
    concurrency: int = Field(
        5, ge=1, description="Parallel lookups during backfill and detail"
    )


class ActivityAggregator:
    """Builds an ActivityResult from the configured backends.

    Example:
        >>> aggregator = ActivityAggregator(zenhub, workspace_id, resolver)
        >>> result = await aggregator.aggregate(ActivityOptions(from_expr="2d"))
    """

    def __init__(
        self,
        zenhub: QueryExecutor,
        workspace_id: str,
        resolver: WorkspaceResolver,
        github: QueryExecutor | None = None,
    ):
        """Initialize aggregator.

        Args:
            zenhub: ZenHub query executor
            workspace_id: ZenHub workspace id
            resolver: Pipeline and repository resolver for the workspace
            github: GitHub query executor, or None when GitHub is not configured
        """
        self.zenhub = zenhub
        self.workspace_id = workspace_id
        self.resolver = resolver
        self.github = github

    async def _select_pipelines(
        self, options: ActivityOptions
    ) -> tuple[list[PipelineDescriptor], list[str]]:
        """Return the pipelines to scan and the canonical display order."""
        if options.pipeline:
            pipeline = await self.resolver.resolve_pipeline(options.pipeline)
            return [pipeline], [pipeline.name]
        pipelines = await self.resolver.get_pipelines()
        return pipelines, [p.name for p in pipelines]

    async def _merge_github(
        self,
        items: dict[str, TrackedItem],
        window: TimeWindow,
        concurrency: int,
        warnings: list[str],
    ) -> None:
        if self.github is None:
            warnings.append(GITHUB_NOT_CONFIGURED)
            return

        discovery = GitHubDiscovery(
            self.zenhub, self.github, self.workspace_id, concurrency
        )
        try:
            repos = await self.resolver.get_repos()
            found = await discovery.discover(
                repos, window, {item.ref for item in items.values()}
            )
        except ActivityError as e:
            warnings.append(f"GitHub search failed: {e}")
            return

        for item in found:
            items[item.id] = item
        if found:
            apply_backfill(items, await discovery.backfill(found, repos))
        logger.debug("GitHub discovery added %d item(s)", len(found))

    async def aggregate(
        self, options: ActivityOptions, now: datetime | None = None
    ) -> ActivityResult:
        """Run the full aggregation.

        Args:
            options: Window, filters and modes for this run
            now: Reference instant for relative time expressions

        Returns:
            Aggregated result sorted by most recent update first

        Raises:
            InvalidTimeFormat: If the window cannot be resolved
            AmbiguousMatch: If a pipeline or repo filter matches several
            NotFound: If a pipeline or repo filter matches nothing
            TransportError: If a ZenHub scan fails
        """
        window = resolve_window(options.from_expr, options.to_expr, now)

        repo_filter = None
        if options.repo:
            repo_filter = (await self.resolver.resolve_repo(options.repo)).name

        pipelines, pipeline_order = await self._select_pipelines(options)

        scanner = ActivityScanner(self.zenhub, self.workspace_id)
        items = await scanner.reconcile(pipelines, window)

        warnings: list[str] = []
        if options.include_github:
            await self._merge_github(items, window, options.concurrency, warnings)

        selected = [
            item
            for item in items.values()
            if repo_filter is None or item.repo_name.lower() == repo_filter.lower()
        ]
        selected.sort(key=lambda item: item.updated_at, reverse=True)

        if options.detail and selected:
            fetcher = DetailFetcher(self.zenhub, self.github, options.concurrency)
            selected = await fetcher.fetch_details(
                selected, window, options.include_github
            )

        return ActivityResult(
            start=window.start,
            end=window.end,
            issues=selected,
            summary=ActivitySummary(
                issue_count=len(selected), pipeline_count=count_pipelines(selected)
            ),
            pipeline_order=pipeline_order,
            warnings=warnings,
            detail=options.detail,
            show_source=options.include_github and self.github is not None,
        )
