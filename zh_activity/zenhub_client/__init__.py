"""ZenHub client package for API interaction."""

from .client import GraphQLResponseError, ZenHubClient, parse_graphql_body
from .workspace import WorkspaceResolver, lookup_repo, match_pipeline

__all__ = [
    "ZenHubClient",
    "GraphQLResponseError",
    "WorkspaceResolver",
    "lookup_repo",
    "match_pipeline",
    "parse_graphql_body",
]
