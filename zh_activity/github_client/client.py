"""GitHub GraphQL access using PyGitHub's authenticated requester."""

import asyncio
import logging
import os
from typing import Any

import requests
from github import Auth, Github
from github.GithubException import (
    BadCredentialsException,
    GithubException,
    RateLimitExceededException,
)

from ..errors import AuthError, TransportError

logger = logging.getLogger(__name__)


class GitHubGraphQLClient:
    """GitHub GraphQL client with authentication.

    PyGitHub only wraps the REST API, so queries go through its requester,
    which handles auth headers, base URL and connection reuse. Calls are
    blocking and run in a worker thread.
    """

    def __init__(self, token: str | None = None):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token. If None, reads from
                ZH_GITHUB_TOKEN or GITHUB_TOKEN env vars.
        """
        self.token = token or os.getenv("ZH_GITHUB_TOKEN") or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token is required. Set ZH_GITHUB_TOKEN or GITHUB_TOKEN "
                "environment variable."
            )

        self.github = Github(auth=Auth.Token(self.token))

    async def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a GraphQL query to GitHub and return the ``data`` object."""
        return await asyncio.to_thread(self._execute, query, variables or {})

    def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        logger.debug("→ GitHub POST /graphql variables=%s", variables)
        try:
            _, payload = self.github.requester.requestJsonAndCheck(
                "POST", "/graphql", input={"query": query, "variables": variables}
            )
        except BadCredentialsException as e:
            raise AuthError("GitHub authentication failed, check your token", e)
        except RateLimitExceededException as e:
            raise TransportError("GitHub rate limit exceeded", e)
        except GithubException as e:
            raise TransportError("GitHub API request failed", e)
        except requests.exceptions.RequestException as e:
            raise TransportError("GitHub is unreachable", e)

        payload = payload or {}
        errors = payload.get("errors") or []
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            raise TransportError(f"GitHub GraphQL error: {messages}")
        return payload.get("data") or {}

    def close(self) -> None:
        self.github.close()
