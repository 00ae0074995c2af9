"""Per-item event enrichment for detail mode."""

import asyncio
import logging

from pydantic import BaseModel, Field

from ..errors import ActivityError, PartialEnrichmentFailure
from .models import ActivityEvent, EventSource, TimeWindow, TrackedItem
from .protocols import QueryExecutor
from .timeline import (
    fetch_github_timeline,
    fetch_pr_connection,
    fetch_zenhub_timeline_by_node,
)

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5


class ItemDetail(BaseModel):
    """Enrichment gathered for one item, applied after all fetches finish."""

    events: list[ActivityEvent] = Field(default_factory=list)
    is_pr: bool = False
    connected_issue: str | None = None


def _log_failure(item: TrackedItem, what: str, error: Exception) -> None:
    failure = PartialEnrichmentFailure(f"fetching {what} for {item.ref}", error)
    logger.debug("%s", failure)


class DetailFetcher:
    """Fetches and merges ZenHub and GitHub timelines for a list of items."""

    def __init__(
        self,
        zenhub: QueryExecutor,
        github: QueryExecutor | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        """Initialize detail fetcher.

        Args:
            zenhub: ZenHub query executor
            github: GitHub query executor, or None when GitHub is not configured
            concurrency: Maximum number of items fetched at once
        """
        self.zenhub = zenhub
        self.github = github
        self.concurrency = concurrency

    async def fetch_item(
        self, item: TrackedItem, window: TimeWindow, include_github: bool
    ) -> ItemDetail:
        """Collect in-window events for one item, oldest first.

        Failures of individual sources are logged and leave that source's
        events out.
        """
        events: list[ActivityEvent] = []

        if not item.has_synthetic_id:
            try:
                _, zenhub_events = await fetch_zenhub_timeline_by_node(
                    self.zenhub, item.id
                )
                events.extend(e for e in zenhub_events if window.contains(e.time))
            except ActivityError as e:
                _log_failure(item, "ZenHub timeline", e)

        is_pr = False
        created_at = None
        created_by = ""
        wants_github = include_github or item.github_sourced
        if wants_github and self.github is not None and item.repo_owner:
            try:
                timeline = await fetch_github_timeline(
                    self.github, item.repo_owner, item.repo_name, item.number
                )
                is_pr = timeline.is_pr
                created_at = timeline.created_at
                created_by = timeline.created_by
                events.extend(e for e in timeline.events if window.contains(e.time))
            except ActivityError as e:
                _log_failure(item, "GitHub timeline", e)

        connected_issue = None
        if is_pr and not item.has_synthetic_id:
            try:
                connected_issue = await fetch_pr_connection(self.zenhub, item.id)
            except ActivityError as e:
                _log_failure(item, "PR connection", e)

        if window.contains(created_at):
            events.append(
                ActivityEvent(
                    time=created_at,
                    source=EventSource.GITHUB,
                    description=(
                        "opened this pull request" if is_pr else "created this issue"
                    ),
                    actor=created_by or None,
                )
            )

        events.sort(key=lambda event: event.time)
        return ItemDetail(events=events, is_pr=is_pr, connected_issue=connected_issue)

    async def fetch_details(
        self, items: list[TrackedItem], window: TimeWindow, include_github: bool
    ) -> list[TrackedItem]:
        """Enrich every item with its events, keeping the input order."""
        slots: list[ItemDetail | None] = [None] * len(items)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def fill(index: int, item: TrackedItem) -> None:
            async with semaphore:
                slots[index] = await self.fetch_item(item, window, include_github)

        results = await asyncio.gather(
            *(fill(i, item) for i, item in enumerate(items)), return_exceptions=True
        )
        for item, result in zip(items, results):
            if isinstance(result, Exception):
                _log_failure(item, "details", result)

        enriched = []
        for item, detail in zip(items, slots):
            if detail is None:
                enriched.append(item)
                continue
            enriched.append(
                item.model_copy(
                    update={
                        "events": detail.events,
                        "is_pr": detail.is_pr,
                        "connected_issue": detail.connected_issue,
                    }
                )
            )
        return enriched
