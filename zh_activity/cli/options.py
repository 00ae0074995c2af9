"""Shared CLI option definitions.

Options used by more than one command live here so their flags and help
text stay consistent.
"""

import typer

# Time window options
FROM_OPTION = typer.Option(
    "1d",
    "--from",
    "-f",
    help="Start of the window: 1d, 2h, 30m, 2w, yesterday, 2026-02-01, RFC3339",
)

TO_OPTION = typer.Option(
    "",
    "--to",
    "-t",
    help="End of the window (same formats as --from, defaults to now)",
)

# Filter options
PIPELINE_OPTION = typer.Option(
    None, "--pipeline", "-p", help="Only scan this pipeline (name, partial name or ID)"
)

REPO_OPTION = typer.Option(
    None, "--repo", "-r", help="Only show items from this repository (name or owner/name)"
)

# Behavior options
GITHUB_OPTION = typer.Option(
    False, "--github", "-g", help="Also search GitHub and include GitHub events"
)

DETAIL_OPTION = typer.Option(
    False, "--detail", "-d", help="Show per-item event timelines"
)

OUTPUT_OPTION = typer.Option(
    "text", "--output", "-o", help="Output format: text or json"
)

VERBOSE_OPTION = typer.Option(
    False, "--verbose", "-v", help="Log API requests and responses to stderr"
)

CONCURRENCY_OPTION = typer.Option(
    5, "--concurrency", min=1, help="Parallel lookups during backfill and detail"
)
