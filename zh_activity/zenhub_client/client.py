"""ZenHub GraphQL API client using httpx."""

import json
import logging
import os
from typing import Any

import httpx

from .. import __version__
from ..errors import AuthError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.zenhub.com/public/graphql"
USER_AGENT = f"zh-activity/{__version__}"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class GraphQLResponseError(TransportError):
    """One or more errors reported in a GraphQL response body."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        if len(messages) == 1:
            message = messages[0]
        else:
            message = f"{len(messages)} GraphQL errors:" + "".join(
                f"\n  - {m}" for m in messages
            )
        super().__init__(message)


def parse_graphql_body(body: bytes | str, source: str = "API") -> dict[str, Any]:
    """Decode a GraphQL response body and return its ``data`` object.

    Args:
        body: Raw response body
        source: Backend name used in error messages

    Returns:
        The ``data`` mapping (empty if the server returned null)

    Raises:
        TransportError: If the body is not JSON
        GraphQLResponseError: If the response carries ``errors``
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise TransportError(f"parsing {source} response", e)

    errors = payload.get("errors") or []
    if errors:
        raise GraphQLResponseError(
            [str(error.get("message", error)) for error in errors]
        )
    return payload.get("data") or {}


class ZenHubClient:
    """ZenHub GraphQL API client with authentication."""

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize ZenHub client with authentication.

        Args:
            api_key: ZenHub API key. If None, reads from ZH_API_KEY env var.
            endpoint: GraphQL endpoint, defaults to the public ZenHub API
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or os.getenv("ZH_API_KEY")
        if not self.api_key:
            raise ValueError(
                "ZenHub API key is required. Set ZH_API_KEY environment variable."
            )

        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._http = httpx.AsyncClient(
            headers=self.headers, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "ZenHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a GraphQL query and return the ``data`` object.

        Raises:
            AuthError: On HTTP 401/403
            TransportError: On network failures, rate limiting, other non-2xx
                responses, or GraphQL errors
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        logger.debug("→ POST %s variables=%s", self.endpoint, variables)

        try:
            response = await self._http.post(self.endpoint, json=body)
        except httpx.HTTPError as e:
            raise TransportError("API request failed", e)

        logger.debug(
            "← %d %s", response.status_code, _truncate(response.text, 2000)
        )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "")
            if retry_after.isdigit():
                raise TransportError(
                    f"rate limited, retry after {retry_after} seconds"
                )
            raise TransportError("rate limited, try again later")

        if response.status_code in (401, 403):
            raise AuthError("authentication failed, check your API key")

        if not response.is_success:
            raise TransportError(
                f"API returned HTTP {response.status_code}: "
                f"{_truncate(response.text, 200)}"
            )

        return parse_graphql_body(response.content, "API")
