"""CLI commands for managing cached workspace metadata."""

import typer
from rich.console import Console

from ..storage.cache import CacheStore

console = Console()
app = typer.Typer(
    help="Manage cached pipelines and repositories",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def clear() -> None:
    """Remove all cached pipeline and repository lists."""
    store = CacheStore()
    removed = store.clear_all()
    console.print(f"🗑️  Removed {removed} cache file(s) from {store.base_path}")
