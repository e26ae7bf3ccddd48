"""Shared fixtures: a scripted query executor and response builders."""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any

import pytest


@dataclass
class ExecutedQuery:
    """One recorded executor call."""

    document: str
    variables: dict[str, Any]
    cursor: str | None


@dataclass
class ScriptedExecutor:
    """Query executor returning canned responses in order.

    ``responses`` is either a list used for every document, or a mapping of
    document -> list. A response that is an exception instance is raised.
    """

    responses: Any = field(default_factory=list)
    calls: list[ExecutedQuery] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        if isinstance(self.responses, dict):
            self._queues = {doc: deque(items) for doc, items in self.responses.items()}
        else:
            self._queues = {None: deque(self.responses)}

    def execute(self, document, variables, cursor=None):
        with self._lock:
            self.calls.append(ExecutedQuery(document, dict(variables), cursor))
            queue = self._queues.get(document, self._queues.get(None))
            if not queue:
                raise AssertionError("Unexpected query: no scripted response left")
            response = queue.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    def calls_for(self, document: str) -> list[ExecutedQuery]:
        return [call for call in self.calls if call.document == document]


def pr_node(
    number: int,
    owner: str = "alice",
    repo: str = "widgets",
    title: str | None = None,
    created_at: str | None = "2024-05-01T12:00:00Z",
    node_id: str | None = None,
    typename: str | None = None,
) -> dict[str, Any]:
    """Build a pull request node as returned by the discovery queries."""
    node: dict[str, Any] = {
        "id": node_id or f"PR_{owner}_{repo}_{number}",
        "number": number,
        "repository": {"name": repo, "owner": {"id": f"U_{owner}", "login": owner}},
    }
    if title is not None:
        node["title"] = title
        node["createdAt"] = created_at
    if typename is not None:
        node["__typename"] = typename
    return node


def owner_page(nodes, has_next=False, end_cursor=None) -> dict[str, Any]:
    """Owner-scoped enumeration response."""
    return {
        "user": {
            "pullRequests": {
                "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
                "nodes": nodes,
            }
        }
    }


def search_page(nodes, has_next=False, end_cursor=None, issue_count=None) -> dict[str, Any]:
    """Search response."""
    return {
        "search": {
            "issueCount": len(nodes) if issue_count is None else issue_count,
            "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
            "nodes": nodes,
        }
    }


def detail_response(pull_request: dict[str, Any] | None, owner="alice", repo="widgets"):
    """Single pull request detail response."""
    return {
        "repository": {
            "name": repo,
            "owner": {"id": f"U_{owner}", "login": owner},
            "pullRequest": pull_request,
        }
    }


def detail_node(number: int = 7, **overrides: Any) -> dict[str, Any]:
    """Pull request node of the detail query."""
    node: dict[str, Any] = {
        "id": f"PR_{number}",
        "number": number,
        "title": "Add frobnicator",
        "bodyText": "Adds the frobnicator.",
        "createdAt": "2024-05-01T12:00:00Z",
        "publishedAt": "2024-05-01T12:05:00Z",
        "author": {"login": "bob"},
        "labels": {"nodes": [{"name": "needs-review"}, {"name": "backend"}]},
        "comments": {
            "pageInfo": {"hasPreviousPage": False},
            "nodes": [{"id": "IC_1", "bodyText": "LGTM", "author": {"login": "carol"}}],
        },
        "commits": {
            "nodes": [
                {
                    "commit": {
                        "statusCheckRollup": {
                            "contexts": {
                                "pageInfo": {"hasNextPage": False},
                                "nodes": [
                                    {
                                        "__typename": "CheckRun",
                                        "id": "CR_1",
                                        "name": "build",
                                        "status": "COMPLETED",
                                        "conclusion": "SUCCESS",
                                    },
                                    {
                                        "__typename": "StatusContext",
                                        "id": "SC_1",
                                        "state": "PENDING",
                                        "description": "Waiting for deploy",
                                        "context": "ci/deploy",
                                    },
                                ],
                            }
                        }
                    }
                }
            ]
        },
    }
    node.update(overrides)
    return node


@pytest.fixture
def executor_factory():
    """Create scripted executors."""
    return ScriptedExecutor
