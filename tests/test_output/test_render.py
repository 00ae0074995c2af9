"""Tests for activity rendering."""

import io
import json
from datetime import datetime, timedelta
from typing import Any

import pytest
from rich.console import Console

from zh_activity.activity.models import (
    ActivityEvent,
    ActivityResult,
    ActivitySummary,
    EventSource,
    TrackedItem,
)
from zh_activity.activity.timeline import IssueHeader
from zh_activity.output.render import (
    format_event_time,
    group_by_pipeline,
    render_activity,
    render_issue_activity,
)
from zh_activity.utils.date_parser import format_date


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def item(number: int, pipeline: str, updated_at: datetime, **update: Any) -> TrackedItem:
    return TrackedItem(
        id=f"z{number}",
        number=number,
        title=f"Item {number}",
        ref=f"api#{number}",
        pipeline=pipeline,
        updated_at=updated_at,
        repo_name="api",
        repo_owner="acme",
    ).model_copy(update=update)


def result_for(
    items: list[TrackedItem], now: datetime, detail: bool = False, **extra: Any
) -> ActivityResult:
    return ActivityResult(
        start=now - timedelta(days=1),
        end=now,
        issues=items,
        summary=ActivitySummary(issue_count=len(items), pipeline_count=0),
        pipeline_order=["Backlog", "In Progress"],
        detail=detail,
        **extra,
    )


class TestGroupByPipeline:
    """Test grouping and pipeline ordering."""

    def test_canonical_order_then_extras(self, now: datetime) -> None:
        items = [
            item(1, "Closed", now),
            item(2, "In Progress", now),
            item(3, "", now),
            item(4, "Backlog", now),
            item(5, "In Progress", now),
        ]

        groups, order = group_by_pipeline(items, ["Backlog", "In Progress", "Done"])

        assert order == ["Backlog", "In Progress", "Closed", "Unknown"]
        assert [i.number for i in groups["In Progress"]] == [2, 5]
        assert [i.number for i in groups["Unknown"]] == [3]


class TestRenderSummary:
    """Test the default summary rendering."""

    def test_summary(self, now: datetime) -> None:
        console, buffer = make_console()
        items = [
            item(1, "In Progress", now - timedelta(hours=2), assignees=["ann", "bo"]),
            item(2, "Backlog", now - timedelta(minutes=5), is_pr=True),
            item(3, "Closed", now - timedelta(hours=20), title="x" * 60),
        ]

        render_activity(console, result_for(items, now), now=now)

        lines = buffer.getvalue().splitlines()
        assert lines[0] == f"Activity since {format_date(now - timedelta(days=1))}"
        assert lines[2] == "Backlog  (1 updated)"
        assert lines[3].startswith("  PR api#2")
        assert lines[3].endswith("Item 2  updated 5m ago")
        assert lines[5].startswith("In Progress  (1 updated)")
        assert "@ann, @bo  updated 2h ago" in lines[6]
        assert lines[8] == "Closed  (1 updated)"
        assert "x" * 37 + "..." in lines[9]
        assert lines[-1] == "3 issue(s) updated across 3 pipeline(s)"

    def test_no_activity(self, now: datetime) -> None:
        console, buffer = make_console()

        render_activity(console, result_for([], now), now=now)

        assert buffer.getvalue().strip() == (
            f"No activity found since {format_date(now - timedelta(days=1))}."
        )

    def test_markup_in_titles_is_literal(self, now: datetime) -> None:
        console, buffer = make_console()
        items = [item(1, "Backlog", now, title="[bold]not markup[/bold]")]

        render_activity(console, result_for(items, now), now=now)

        assert "[bold]not markup[/bold]" in buffer.getvalue()


class TestRenderDetail:
    """Test detail-mode rendering."""

    def test_detail(self, now: datetime) -> None:
        console, buffer = make_console()
        event_time = now - timedelta(hours=1)
        events = [
            ActivityEvent(
                time=event_time,
                source=EventSource.GITHUB,
                description="closed this issue",
                actor="sam",
            ),
            ActivityEvent(
                time=event_time,
                source=EventSource.ZENHUB,
                description="set estimate to 3",
            ),
        ]
        items = [
            item(1, "Backlog", now, events=events),
            item(2, "In Progress", now, is_pr=True, connected_issue="web#9"),
        ]

        render_activity(
            console, result_for(items, now, detail=True, show_source=True), now=now
        )

        output = buffer.getvalue()
        stamp = format_event_time(event_time)
        assert "api#1: Item 1" in output
        assert f"  {stamp}  @sam closed this issue  [GitHub]" in output
        assert f"  {stamp}  set estimate to 3  [ZenHub]" in output
        assert "PR api#2: Item 2  → web#9" in output
        assert "  (no events in time range)" in output
        assert output.splitlines()[-1] == "2 issue(s), 2 event(s) across 2 pipeline(s)"


class TestRenderJson:
    """Test JSON output."""

    def test_json_keys(self, now: datetime) -> None:
        console, buffer = make_console()
        items = [item(1, "Backlog", now, gh_updated_at=now)]

        render_activity(
            console, result_for(items, now, warnings=["ignored"]), as_json=True
        )

        payload = json.loads(buffer.getvalue())
        assert set(payload) == {"from", "to", "issues", "summary"}
        assert payload["summary"] == {"issueCount": 1, "pipelineCount": 0}
        issue = payload["issues"][0]
        assert issue["ref"] == "api#1"
        assert issue["repoOwner"] == "acme"
        assert issue["githubSourced"] is False
        assert "ghUpdatedAt" in issue

    def test_empty_json(self, now: datetime) -> None:
        console, buffer = make_console()

        render_activity(console, result_for([], now), as_json=True)

        assert json.loads(buffer.getvalue())["issues"] == []


class TestRenderIssueActivity:
    """Test single-issue rendering."""

    @pytest.fixture
    def header(self) -> IssueHeader:
        return IssueHeader(number=5, title="Login broken", repo_name="api", repo_owner="acme")

    def test_text(self, header: IssueHeader, now: datetime) -> None:
        console, buffer = make_console()
        events = [
            ActivityEvent(
                time=now, source=EventSource.ZENHUB, description="added to sprint"
            )
        ]

        render_issue_activity(console, header, events)

        lines = buffer.getvalue().splitlines()
        assert lines[0] == "ACTIVITY  api#5: Login broken"
        assert lines[2] == "EVENTS"
        assert lines[3] == f"  {format_event_time(now)}  added to sprint"
        assert lines[-1] == "Total: 1 event(s)"

    def test_no_events(self, header: IssueHeader) -> None:
        console, buffer = make_console()

        render_issue_activity(console, header, [])

        assert buffer.getvalue().strip() == "No activity found for api#5."

    def test_json(self, header: IssueHeader, now: datetime) -> None:
        console, buffer = make_console()
        events = [
            ActivityEvent(
                time=now,
                source=EventSource.GITHUB,
                description="closed this issue",
                actor="sam",
            )
        ]

        render_issue_activity(console, header, events, as_json=True)

        payload = json.loads(buffer.getvalue())
        assert payload["issue"] == {"ref": "api#5", "title": "Login broken", "number": 5}
        assert payload["events"][0]["source"] == "GitHub"
        assert payload["events"][0]["actor"] == "sam"
