"""Rendering of activity results to the terminal or as JSON."""

from datetime import datetime

from rich.console import Console
from rich.text import Text

from ..activity.models import (
    UNKNOWN_PIPELINE,
    ActivityEvent,
    ActivityResult,
    TrackedItem,
    count_pipelines,
)
from ..activity.timeline import IssueHeader
from ..utils.date_parser import format_date, format_time_ago
from ..utils.text import truncate

SUMMARY_TITLE_LIMIT = 40
REF_WIDTH = 24


def group_by_pipeline(
    items: list[TrackedItem], canonical_order: list[str]
) -> tuple[dict[str, list[TrackedItem]], list[str]]:
    """Group items by placement.

    Returns:
        Groups keyed by pipeline name, and the pipeline names ordered by the
        workspace order followed by any others (e.g. Closed) alphabetically
    """
    groups: dict[str, list[TrackedItem]] = {}
    for item in items:
        groups.setdefault(item.pipeline or UNKNOWN_PIPELINE, []).append(item)

    order = [name for name in canonical_order if name in groups]
    order.extend(sorted(name for name in groups if name not in order))
    return groups, order


def format_event_time(moment: datetime) -> str:
    """Format an event time like ``Jan 2 15:04`` in the local zone."""
    local = moment.astimezone()
    return f"{local:%b} {local.day} {local:%H:%M}"


def _print(console: Console, *parts: str | tuple[str, str]) -> None:
    console.print(Text.assemble(*parts), soft_wrap=True)


def _pr_prefix(item: TrackedItem) -> tuple[str, str]:
    return ("PR " if item.is_pr else "", "dim")


def _event_line(event: ActivityEvent, show_source: bool) -> list[str | tuple[str, str]]:
    actor = f"@{event.actor} " if event.actor else ""
    parts: list[str | tuple[str, str]] = [
        "  ",
        (format_event_time(event.time), "dim"),
        f"  {actor}{event.description}",
    ]
    if show_source:
        parts.extend(["  ", (f"[{event.source.value}]", "dim")])
    return parts


def render_summary(
    console: Console, result: ActivityResult, now: datetime | None = None
) -> None:
    """Print one line per item, grouped by pipeline."""
    _print(console, f"Activity since {format_date(result.start)}")
    console.print()

    groups, order = group_by_pipeline(result.issues, result.pipeline_order)
    for index, pipeline in enumerate(order):
        if index > 0:
            console.print()
        members = groups[pipeline]
        _print(console, (pipeline, "bold"), "  ", (f"({len(members)} updated)", "dim"))
        for item in members:
            parts: list[str | tuple[str, str]] = [
                "  ",
                _pr_prefix(item),
                (f"{item.ref:<{REF_WIDTH}}", "cyan"),
                f"  {truncate(item.title, SUMMARY_TITLE_LIMIT)}",
            ]
            if item.assignees:
                parts.extend(["  ", ("@" + ", @".join(item.assignees), "dim")])
            parts.extend(
                ["  ", (f"updated {format_time_ago(item.updated_at, now)}", "dim")]
            )
            _print(console, *parts)

    console.print()
    _print(
        console,
        f"{len(result.issues)} issue(s) updated across {len(order)} pipeline(s)",
    )


def render_detail(console: Console, result: ActivityResult) -> None:
    """Print each item's events, grouped by pipeline."""
    _print(console, f"Activity since {format_date(result.start)}")

    groups, order = group_by_pipeline(result.issues, result.pipeline_order)
    total_events = 0
    for index, pipeline in enumerate(order):
        if index > 0:
            console.print()
        console.print()
        _print(console, (pipeline, "bold"))

        for item in groups[pipeline]:
            console.print()
            header: list[str | tuple[str, str]] = [
                _pr_prefix(item),
                (item.ref, "cyan"),
                f": {item.title}",
            ]
            if item.connected_issue:
                header.extend(["  ", (f"→ {item.connected_issue}", "dim")])
            _print(console, *header)

            if not item.events:
                _print(console, ("  (no events in time range)", "dim"))
                continue
            for event in item.events:
                _print(console, *_event_line(event, result.show_source))
                total_events += 1

    console.print()
    _print(
        console,
        f"{len(result.issues)} issue(s), {total_events} event(s) "
        f"across {count_pipelines(result.issues)} pipeline(s)",
    )


def render_json(console: Console, result: ActivityResult) -> None:
    """Print the result as JSON with camelCase keys."""
    console.print_json(result.model_dump_json(by_alias=True))


def render_activity(
    console: Console,
    result: ActivityResult,
    as_json: bool = False,
    now: datetime | None = None,
) -> None:
    """Render a result in the requested mode."""
    if as_json:
        render_json(console, result)
        return
    if not result.issues:
        _print(console, f"No activity found since {format_date(result.start)}.")
        return
    if result.detail:
        render_detail(console, result)
    else:
        render_summary(console, result, now)


def render_issue_activity(
    console: Console,
    header: IssueHeader,
    events: list[ActivityEvent],
    show_source: bool = False,
    as_json: bool = False,
) -> None:
    """Render the full timeline of a single issue."""
    if as_json:
        console.print_json(
            data={
                "issue": {
                    "ref": header.ref,
                    "title": header.title,
                    "number": header.number,
                },
                "events": [
                    event.model_dump(mode="json", by_alias=True) for event in events
                ],
            }
        )
        return

    if not events:
        _print(console, f"No activity found for {header.ref}.")
        return

    _print(console, ("ACTIVITY", "bold"), f"  {header.ref}: {header.title}")
    console.print()
    _print(console, ("EVENTS", "bold"))
    for event in events:
        _print(console, *_event_line(event, show_source))

    console.print()
    _print(console, f"Total: {len(events)} event(s)")
