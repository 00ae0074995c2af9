"""Main CLI entry point."""

import typer
from dotenv import load_dotenv
from rich.console import Console

from . import cache
from .activity import activity, issue_activity

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="zh-activity",
    help="Recent activity across a ZenHub workspace and its GitHub repositories",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


app.command(name="activity", context_settings={"help_option_names": ["-h", "--help"]})(
    activity
)
app.command(
    name="issue-activity", context_settings={"help_option_names": ["-h", "--help"]}
)(issue_activity)
app.add_typer(cache.app, name="cache")


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from zh_activity import __version__

    console.print(f"zh-activity v{__version__}")


if __name__ == "__main__":
    app()
