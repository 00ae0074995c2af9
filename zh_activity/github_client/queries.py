"""GraphQL documents sent to the GitHub API."""

ACTIVITY_SEARCH_QUERY = """query ActivityGitHubSearch($query: String!, $first: Int!, $after: String) {
  search(query: $query, type: ISSUE, first: $first, after: $after) {
    issueCount
    pageInfo { hasNextPage endCursor }
    nodes {
      ... on Issue {
        number
        title
        updatedAt
        repository { name owner { login } }
      }
      ... on PullRequest {
        number
        title
        updatedAt
        repository { name owner { login } }
      }
    }
  }
}"""

_COMMON_ITEMS = """
            __typename
            ... on LabeledEvent { createdAt actor { login } label { name } }
            ... on UnlabeledEvent { createdAt actor { login } label { name } }
            ... on AssignedEvent { createdAt actor { login } assignee { ... on User { login } } }
            ... on UnassignedEvent { createdAt actor { login } assignee { ... on User { login } } }
            ... on ClosedEvent { createdAt actor { login } }
            ... on ReopenedEvent { createdAt actor { login } }
            ... on CrossReferencedEvent { createdAt actor { login } source { ... on Issue { number title } ... on PullRequest { number title } } }
            ... on IssueComment { createdAt author { login } body }
            ... on RenamedTitleEvent { createdAt actor { login } previousTitle currentTitle }
            ... on MilestonedEvent { createdAt actor { login } milestoneTitle }
            ... on DemilestonedEvent { createdAt actor { login } milestoneTitle }"""

_ISSUE_ITEMS = """
            ... on IssueTypeAddedEvent { createdAt actor { login } issueType { name } }
            ... on IssueTypeChangedEvent { createdAt actor { login } issueType { name } prevIssueType { name } }
            ... on IssueTypeRemovedEvent { createdAt actor { login } issueType { name } }
            ... on ParentIssueAddedEvent { createdAt actor { login } parent { number title repository { name } } }
            ... on ParentIssueRemovedEvent { createdAt actor { login } parent { number title repository { name } } }
            ... on SubIssueAddedEvent { createdAt actor { login } subIssue { number title repository { name } } }
            ... on SubIssueRemovedEvent { createdAt actor { login } subIssue { number title repository { name } } }"""

_PULL_REQUEST_ITEMS = """
            ... on MergedEvent { createdAt actor { login } }
            ... on HeadRefDeletedEvent { createdAt actor { login } }
            ... on PullRequestCommit { commit { committedDate message author { user { login } } } }
            ... on PullRequestReview { createdAt author { login } state }
            ... on ReviewRequestedEvent { createdAt actor { login } requestedReviewer { ... on User { login } } }
            ... on HeadRefForcePushedEvent { createdAt actor { login } }
            ... on ReadyForReviewEvent { createdAt actor { login } }
            ... on ConvertToDraftEvent { createdAt actor { login } }"""


def _owner_fragment(typename: str, items: str) -> str:
    return f"""
      ... on {typename} {{
        __typename
        createdAt
        author {{ login }}
        userContentEdits(first: 1) {{ nodes {{ createdAt editor {{ login }} }} }}
        timelineItems(first: $first, after: $after) {{
          totalCount
          pageInfo {{ hasNextPage endCursor }}
          nodes {{{items}
          }}
        }}
      }}"""


TIMELINE_QUERY = (
    "query GetGitHubTimeline($owner: String!, $repo: String!, $number: Int!, "
    "$first: Int!, $after: String) {\n"
    "  repository(owner: $owner, name: $repo) {\n"
    "    issueOrPullRequest(number: $number) {"
    + _owner_fragment("Issue", _COMMON_ITEMS + _ISSUE_ITEMS)
    + _owner_fragment("PullRequest", _COMMON_ITEMS + _PULL_REQUEST_ITEMS)
    + "\n    }\n  }\n}"
)
