"""GraphQL documents sent to the ZenHub API."""

PIPELINE_ACTIVITY_QUERY = """query ActivitySearch(
  $pipelineId: ID!
  $workspaceId: ID!
  $first: Int!
  $after: String
) {
  searchIssuesByPipeline(
    pipelineId: $pipelineId
    filters: {}
    order: { field: updated_at, direction: DESC }
    first: $first
    after: $after
  ) {
    totalCount
    pageInfo { hasNextPage endCursor }
    nodes {
      id
      number
      title
      state
      updatedAt
      ghUpdatedAt
      repository { name ownerName }
      assignees(first: 5) { nodes { login } }
      pipelineIssue(workspaceId: $workspaceId) { pipeline { name } }
    }
  }
}"""

CLOSED_ACTIVITY_QUERY = """query ActivityClosed($workspaceId: ID!, $first: Int!) {
  searchClosedIssues(workspaceId: $workspaceId, filters: {}, first: $first) {
    nodes {
      id
      number
      title
      state
      updatedAt
      ghUpdatedAt
      repository { name ownerName }
      assignees(first: 5) { nodes { login } }
    }
  }
}"""

ISSUE_BY_INFO_QUERY = """query ActivityIssueByInfo(
  $repositoryGhId: Int!
  $issueNumber: Int!
  $workspaceId: ID!
) {
  issueByInfo(repositoryGhId: $repositoryGhId, issueNumber: $issueNumber) {
    id
    pipelineIssue(workspaceId: $workspaceId) { pipeline { name } }
  }
}"""

DEFAULT_PR_PIPELINE_QUERY = """query ActivityDefaultPRPipeline($workspaceId: ID!) {
  workspace(id: $workspaceId) {
    pipelinesConnection(first: 50) {
      nodes { name isDefaultPRPipeline }
    }
  }
}"""

LIST_PIPELINES_QUERY = """query ListPipelines($workspaceId: ID!) {
  workspace(id: $workspaceId) {
    pipelinesConnection(first: 50) {
      nodes { id name }
    }
  }
}"""

LIST_REPOS_QUERY = """query ListRepos($workspaceId: ID!, $first: Int!, $after: String) {
  workspace(id: $workspaceId) {
    repositoriesConnection(first: $first, after: $after) {
      totalCount
      pageInfo { hasNextPage endCursor }
      nodes { id ghId name ownerName }
    }
  }
}"""

_TIMELINE_FIELDS = """
      id
      number
      title
      repository { name owner { login } }
      timelineItems(first: $first, after: $after) {
        totalCount
        pageInfo { hasNextPage endCursor }
        nodes { id key data createdAt }
      }"""

TIMELINE_BY_NODE_QUERY = (
    "query GetIssueTimelineByNode($id: ID!, $first: Int!, $after: String) {\n"
    "  node(id: $id) {\n"
    "    ... on Issue {" + _TIMELINE_FIELDS + "\n    }\n  }\n}"
)

TIMELINE_BY_INFO_QUERY = (
    "query GetIssueTimeline(\n"
    "  $repositoryGhId: Int!\n"
    "  $issueNumber: Int!\n"
    "  $first: Int!\n"
    "  $after: String\n"
    ") {\n"
    "  issueByInfo(repositoryGhId: $repositoryGhId, issueNumber: $issueNumber) {"
    + _TIMELINE_FIELDS
    + "\n  }\n}"
)

PR_CONNECTIONS_QUERY = """query PRConnections($id: ID!) {
  node(id: $id) {
    ... on Issue {
      connections(first: 1) {
        nodes { number repository { name } }
      }
    }
  }
}"""
