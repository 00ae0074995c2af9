"""GitHub search query building for activity discovery."""

from collections.abc import Iterable

# GitHub rejects long search strings, so repo qualifiers are split into
# batches whose joined length stays under this many characters.
REPO_CLAUSE_LIMIT = 200

# A repo-scoped search returns nothing without an explicit type qualifier.
TYPE_QUALIFIERS = ("is:issue", "is:pr")


def build_repo_clauses(repos: Iterable[tuple[str, str]]) -> list[str]:
    """Build ``repo:owner/name`` qualifiers.

    Example:
        >>> build_repo_clauses([("acme", "api"), ("acme", "web")])
        ["repo:acme/api", "repo:acme/web"]
    """
    return [f"repo:{owner}/{name}" for owner, name in repos]


def batch_repo_clauses(
    clauses: list[str], limit: int = REPO_CLAUSE_LIMIT
) -> list[list[str]]:
    """Group repo qualifiers so each space-joined group fits within ``limit``.

    A single qualifier longer than ``limit`` still gets its own batch.
    """
    batches: list[list[str]] = []
    batch: list[str] = []
    batch_len = 0
    for clause in clauses:
        if batch and batch_len + len(clause) + 1 > limit:
            batches.append(batch)
            batch = []
            batch_len = 0
        batch.append(clause)
        batch_len += len(clause) + 1
    if batch:
        batches.append(batch)
    return batches


def build_activity_search_query(
    repo_clauses: list[str], type_qualifier: str, updated_after: str
) -> str:
    """Build a GitHub search query for items updated since a point in time.

    Args:
        repo_clauses: ``repo:owner/name`` qualifiers for one batch
        type_qualifier: ``is:issue`` or ``is:pr``
        updated_after: Timestamp formatted for GitHub search

    Returns:
        GitHub search query string

    Example:
        >>> build_activity_search_query(
        ...     ["repo:acme/api"], "is:pr", "2026-02-01T00:00:00"
        ... )
        "repo:acme/api is:pr updated:>2026-02-01T00:00:00"
    """
    return f"{' '.join(repo_clauses)} {type_qualifier} updated:>{updated_after}"
