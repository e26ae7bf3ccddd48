"""GraphQL query templates for pull request discovery and detail.

Field selections are load-bearing: each discovery shape decides which
summary fields can be populated, so callers rely on them as written.
"""

# Page sizes baked into the documents below
OWNER_PAGE_SIZE = 20
SEARCH_DETAIL_PAGE_SIZE = 10
SEARCH_IDENTITY_PAGE_SIZE = 20

# Fixed sub-list limits of the single pull request query
DETAIL_LABEL_LIMIT = 5
DETAIL_COMMENT_LIMIT = 10
DETAIL_STATUS_CONTEXT_LIMIT = 5

# Open pull requests authored by an account, with title and creation time
OWNER_PULL_REQUESTS = """
query OwnerPullRequests($owner: String!, $labels: [String!], $cursor: String) {
  user(login: $owner) {
    pullRequests(
      first: 20
      after: $cursor
      states: [OPEN]
      labels: $labels
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        number
        title
        createdAt
        repository {
          name
          owner {
            id
            login
          }
        }
      }
    }
  }
}
"""

# Same enumeration, identity fields only
OWNER_PULL_REQUEST_IDS = """
query OwnerPullRequestIds($owner: String!, $labels: [String!], $cursor: String) {
  user(login: $owner) {
    pullRequests(
      first: 20
      after: $cursor
      states: [OPEN]
      labels: $labels
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        number
        repository {
          name
          owner {
            id
            login
          }
        }
      }
    }
  }
}
"""

# Issue search restricted to pull requests, with title and creation time
SEARCH_PULL_REQUESTS = """
query SearchPullRequests($query: String!, $cursor: String) {
  search(query: $query, type: ISSUE, first: 10, after: $cursor) {
    issueCount
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      __typename
      ... on PullRequest {
        id
        number
        title
        createdAt
        repository {
          name
          owner {
            id
            login
          }
        }
      }
    }
  }
}
"""

# Same search, identity fields only and larger pages
SEARCH_PULL_REQUEST_IDS = """
query SearchPullRequestIds($query: String!, $cursor: String) {
  search(query: $query, type: ISSUE, first: 20, after: $cursor) {
    issueCount
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      __typename
      ... on PullRequest {
        id
        number
        repository {
          name
          owner {
            id
            login
          }
        }
      }
    }
  }
}
"""

# Single pull request with labels, latest comments and the CI rollup of the last commit
PULL_REQUEST_DETAIL = """
query PullRequestDetail($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    name
    owner {
      id
      login
    }
    pullRequest(number: $number) {
      id
      number
      title
      bodyText
      createdAt
      publishedAt
      author {
        login
      }
      labels(first: 5) {
        nodes {
          name
        }
      }
      comments(last: 10) {
        pageInfo {
          hasPreviousPage
        }
        nodes {
          id
          bodyText
          author {
            login
          }
        }
      }
      commits(last: 1) {
        nodes {
          commit {
            statusCheckRollup {
              contexts(first: 5) {
                pageInfo {
                  hasNextPage
                }
                nodes {
                  __typename
                  ... on CheckRun {
                    id
                    name
                    status
                    conclusion
                  }
                  ... on StatusContext {
                    id
                    state
                    description
                    context
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""
