"""Configuration for ZenHub and GitHub access."""

import os
from typing import Optional

from .zenhub_client.client import DEFAULT_ENDPOINT

GITHUB_METHODS = ("pat", "none")


class ActivityConfig:
    """Configuration class for ZenHub and optional GitHub access."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.api_key: Optional[str] = os.getenv("ZH_API_KEY")
        self.workspace: Optional[str] = os.getenv("ZH_WORKSPACE")
        self.endpoint: str = os.getenv("ZH_ENDPOINT") or DEFAULT_ENDPOINT
        self.github_token: Optional[str] = os.getenv("ZH_GITHUB_TOKEN") or os.getenv(
            "GITHUB_TOKEN"
        )
        self.github_method: str = (os.getenv("ZH_GITHUB_METHOD") or "pat").lower()

    def is_configured(self) -> bool:
        """Check if ZenHub access is configured."""
        return bool(self.api_key and self.workspace)

    def is_github_configured(self) -> bool:
        """Check if GitHub access is configured and enabled."""
        return self.github_method != "none" and bool(self.github_token)

    @property
    def workspace_id(self) -> str:
        """ZenHub workspace id, raising ValueError when ZH_WORKSPACE is unset."""
        if not self.workspace:
            raise ValueError("Missing required environment variables: ZH_WORKSPACE")
        return self.workspace

    def validate(self) -> None:
        """Validate configuration and raise error if invalid."""
        missing = [
            name
            for name, value in (
                ("ZH_API_KEY", self.api_key),
                ("ZH_WORKSPACE", self.workspace),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        if self.github_method not in GITHUB_METHODS:
            raise ValueError(
                f"ZH_GITHUB_METHOD must be one of: {', '.join(GITHUB_METHODS)}"
            )
