"""GitHub client package for API interaction."""

from .client import GitHubGraphQLClient
from .events import GitHubTimelineOwner, parse_timeline_node
from .search import batch_repo_clauses, build_activity_search_query, build_repo_clauses

__all__ = [
    "GitHubGraphQLClient",
    "GitHubTimelineOwner",
    "parse_timeline_node",
    "batch_repo_clauses",
    "build_activity_search_query",
    "build_repo_clauses",
]
