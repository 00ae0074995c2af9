"""File-backed JSON cache for workspace metadata."""

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from .. import __version__

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def default_cache_dir() -> Path:
    """Return the XDG cache directory for zh-activity."""
    xdg = os.getenv("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / "zh-activity"
    return Path.home() / ".cache" / "zh-activity"


def scoped_key(resource: str, workspace_id: str | None = None) -> str:
    """Build a cache key, optionally scoped to a workspace.

    Example:
        >>> scoped_key("pipelines", "ws123")
        "pipelines-ws123"
    """
    if workspace_id:
        return f"{resource}-{workspace_id}"
    return resource


class CacheStore:
    """Stores previously fetched values as one JSON file per key.

    Entries older than ``ttl`` are treated as missing. Callers refresh on a
    miss, so lookups that fail against cached data should clear the key and
    fetch again.
    """

    def __init__(
        self,
        base_path: str | Path | None = None,
        ttl: timedelta | None = DEFAULT_TTL,
    ):
        """Initialize cache store.

        Args:
            base_path: Directory for cache files, defaults to the XDG cache dir
            ttl: Maximum entry age, or None to keep entries until cleared
        """
        self.base_path = Path(base_path) if base_path else default_cache_dir()
        self.ttl = ttl

    def _get_file_path(self, key: str) -> Path:
        return self.base_path / f"{key}.json"

    def get(self, key: str) -> tuple[Any, bool]:
        """Read a cached value.

        Returns:
            ``(value, True)`` on a fresh hit, ``(None, False)`` otherwise
        """
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None, False

        try:
            with open(file_path, encoding="utf-8") as f:
                stored = json.load(f)
            cached_at = datetime.fromisoformat(stored["metadata"]["cached_at"])
            value = stored["value"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", file_path, e)
            return None, False

        if self.ttl is not None and datetime.now(timezone.utc) - cached_at > self.ttl:
            logger.debug("Cache entry %s expired", key)
            return None, False

        return value, True

    def set(self, key: str, value: Any) -> None:
        """Write a JSON-serializable value to the cache."""
        self.base_path.mkdir(parents=True, exist_ok=True, mode=0o700)
        file_path = self._get_file_path(key)
        stored = {
            "metadata": {
                "cached_at": datetime.now(timezone.utc).isoformat(),
                "tool_version": __version__,
            },
            "value": value,
        }
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(stored, f, indent=2, ensure_ascii=False, default=str)
        os.chmod(file_path, 0o600)

    def clear(self, key: str) -> None:
        """Remove a cache entry. Missing entries are ignored."""
        self._get_file_path(key).unlink(missing_ok=True)

    def clear_all(self) -> int:
        """Remove every cache entry.

        Returns:
            Number of entries removed
        """
        if not self.base_path.exists():
            return 0
        removed = 0
        for file_path in self.base_path.glob("*.json"):
            file_path.unlink()
            removed += 1
        return removed
