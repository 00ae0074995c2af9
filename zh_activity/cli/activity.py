"""CLI commands for workspace and single-issue activity."""

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..activity.engine import GITHUB_NOT_CONFIGURED, ActivityAggregator, ActivityOptions
from ..activity.models import ActivityEvent, ActivityResult, parse_issue_ref
from ..activity.timeline import (
    IssueHeader,
    fetch_github_timeline,
    fetch_zenhub_timeline_by_info,
    fetch_zenhub_timeline_by_node,
)
from ..config import ActivityConfig
from ..errors import ActivityError, InvalidIssueRef, exit_code_for
from ..github_client.client import GitHubGraphQLClient
from ..output.render import render_activity, render_issue_activity
from ..storage.cache import CacheStore
from ..zenhub_client.client import ZenHubClient
from ..zenhub_client.workspace import WorkspaceResolver
from .options import (
    CONCURRENCY_OPTION,
    DETAIL_OPTION,
    FROM_OPTION,
    GITHUB_OPTION,
    OUTPUT_OPTION,
    PIPELINE_OPTION,
    REPO_OPTION,
    TO_OPTION,
    VERBOSE_OPTION,
)

console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS = ("text", "json")


def configure_logging(verbose: bool) -> None:
    """Send debug logs to stderr when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_config() -> tuple[ActivityConfig, str]:
    """Load and validate configuration, exiting on missing settings.

    Returns:
        The configuration and the ZenHub workspace id it names
    """
    config = ActivityConfig()
    try:
        config.validate()
        workspace = config.workspace_id
    except ValueError as e:
        err_console.print(f"❌ Error: {e}", markup=False)
        raise typer.Exit(1)
    return config, workspace


def build_github_client(config: ActivityConfig) -> GitHubGraphQLClient | None:
    """Create the GitHub client, or None when GitHub is not configured."""
    if not config.is_github_configured():
        return None
    return GitHubGraphQLClient(token=config.github_token)


def check_output_format(output: str) -> bool:
    """Validate --output and return True for JSON."""
    if output not in OUTPUT_FORMATS:
        err_console.print(
            f"❌ Error: --output must be one of: {', '.join(OUTPUT_FORMATS)}",
            markup=False,
        )
        raise typer.Exit(2)
    return output == "json"


def warn(message: str) -> None:
    err_console.print(f"Warning: {message}", style="yellow", markup=False)


def fail(error: ActivityError) -> typer.Exit:
    """Print an error and return the matching typer.Exit to raise."""
    err_console.print(f"❌ {error}", markup=False)
    return typer.Exit(exit_code_for(error))


async def _aggregate(
    config: ActivityConfig, workspace: str, options: ActivityOptions
) -> ActivityResult:
    github = build_github_client(config)
    try:
        async with ZenHubClient(
            api_key=config.api_key, endpoint=config.endpoint
        ) as zenhub:
            resolver = WorkspaceResolver(zenhub, workspace, CacheStore())
            aggregator = ActivityAggregator(zenhub, workspace, resolver, github=github)
            return await aggregator.aggregate(options)
    finally:
        if github is not None:
            github.close()


def activity(
    from_expr: str = FROM_OPTION,
    to_expr: str = TO_OPTION,
    github: bool = GITHUB_OPTION,
    detail: bool = DETAIL_OPTION,
    pipeline: str | None = PIPELINE_OPTION,
    repo: str | None = REPO_OPTION,
    output: str = OUTPUT_OPTION,
    concurrency: int = CONCURRENCY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show recently updated issues across the workspace.

    Examples:
        zh-activity activity
        zh-activity activity --from 7d --pipeline "In Progress"
        zh-activity activity --from yesterday --github --detail
        zh-activity activity --from 2026-02-01 --to 2026-02-08 --output json
    """
    configure_logging(verbose)
    as_json = check_output_format(output)
    config, workspace = load_config()

    options = ActivityOptions(
        from_expr=from_expr,
        to_expr=to_expr,
        include_github=github,
        detail=detail,
        pipeline=pipeline,
        repo=repo,
        concurrency=concurrency,
    )

    try:
        result = asyncio.run(_aggregate(config, workspace, options))
    except ActivityError as e:
        raise fail(e)

    for message in result.warnings:
        warn(message)

    render_activity(console, result, as_json=as_json)


async def _issue_timeline(
    config: ActivityConfig, workspace: str, ref: str, include_github: bool
) -> tuple[IssueHeader, list[ActivityEvent], bool]:
    parsed = parse_issue_ref(ref)
    github = build_github_client(config) if include_github else None
    try:
        async with ZenHubClient(
            api_key=config.api_key, endpoint=config.endpoint
        ) as zenhub:
            if parsed.node_id is not None:
                header, events = await fetch_zenhub_timeline_by_node(
                    zenhub, parsed.node_id
                )
            elif parsed.number is not None:
                resolver = WorkspaceResolver(zenhub, workspace, CacheStore())
                repo = await resolver.resolve_repo(parsed.repo_identifier)
                header, events = await fetch_zenhub_timeline_by_info(
                    zenhub, repo.gh_id, parsed.number
                )
            else:
                raise InvalidIssueRef(f"invalid issue reference {ref!r}")

            if include_github:
                if github is None:
                    warn(GITHUB_NOT_CONFIGURED)
                else:
                    try:
                        timeline = await fetch_github_timeline(
                            github, header.repo_owner, header.repo_name, header.number
                        )
                        events.extend(timeline.events)
                    except ActivityError as e:
                        warn(f"failed to fetch GitHub timeline: {e}")
    finally:
        if github is not None:
            github.close()

    events.sort(key=lambda event: event.time)
    return header, events, github is not None


def issue_activity(
    ref: str = typer.Argument(
        ..., help="Issue reference: repo#number, owner/repo#number or ZenHub ID"
    ),
    github: bool = GITHUB_OPTION,
    output: str = OUTPUT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the full timeline of a single issue or pull request.

    Examples:
        zh-activity issue-activity api#42
        zh-activity issue-activity acme/api#42 --github
    """
    configure_logging(verbose)
    as_json = check_output_format(output)
    config, workspace = load_config()

    try:
        header, events, show_source = asyncio.run(
            _issue_timeline(config, workspace, ref, github)
        )
    except ActivityError as e:
        raise fail(e)

    render_issue_activity(
        console, header, events, show_source=show_source, as_json=as_json
    )
