"""Tests for discovery strategies."""

import pytest
from conftest import ScriptedExecutor, owner_page, pr_node, search_page

from prscout.cancellation import CancellationToken
from prscout.discovery import OwnerScopedEnumeration, QueryShape, SearchScopedEnumeration
from prscout.errors import DiscoveryError, ProtocolError, RateLimitError, TransportError
from prscout.github.queries import (
    OWNER_PULL_REQUEST_IDS,
    OWNER_PULL_REQUESTS,
    SEARCH_PULL_REQUEST_IDS,
    SEARCH_PULL_REQUESTS,
)


def numbered(start: int, count: int, **kwargs):
    return [pr_node(n, title=f"PR {n}", **kwargs) for n in range(start, start + count)]


class TestOwnerScopedEnumeration:
    """Tests for OwnerScopedEnumeration."""

    def test_two_pages_end_to_end(self):
        """Owner alice, one label, 20 + 3 items over two pages."""
        executor = ScriptedExecutor(
            [
                owner_page(numbered(1, 20), has_next=True, end_cursor="C1"),
                owner_page(numbered(21, 3), has_next=False, end_cursor="C2"),
            ]
        )
        strategy = OwnerScopedEnumeration(executor, "alice", labels=["needs-review"])

        summaries = list(strategy)

        assert len(summaries) == 23
        assert strategy.tracker.exhausted is True
        assert len(executor.calls) == 2
        assert executor.calls[0].cursor is None
        assert executor.calls[1].cursor == "C1"
        assert executor.calls[0].variables == {"owner": "alice", "labels": ["needs-review"]}

    def test_no_queries_after_last_page(self):
        """Iterating an exhausted strategy issues no further queries."""
        executor = ScriptedExecutor([owner_page(numbered(1, 2))])
        strategy = OwnerScopedEnumeration(executor, "alice")
        list(strategy)
        assert list(strategy) == []
        assert len(executor.calls) == 1

    def test_decodes_summary_fields(self):
        executor = ScriptedExecutor([owner_page([pr_node(5, title="Fix it")])])
        (summary,) = list(OwnerScopedEnumeration(executor, "alice"))
        assert summary.number == 5
        assert summary.owner.login == "alice"
        assert summary.owner.id == "U_alice"
        assert summary.repository_name == "widgets"
        assert summary.title == "Fix it"
        assert summary.created_at is not None
        assert summary.created_at.year == 2024

    def test_identity_shape(self):
        """Identity shape uses the lighter document and leaves title unset."""
        executor = ScriptedExecutor([owner_page([pr_node(5)])])
        strategy = OwnerScopedEnumeration(executor, "alice", shape=QueryShape.IDENTITY)
        (summary,) = list(strategy)
        assert executor.calls[0].document == OWNER_PULL_REQUEST_IDS
        assert summary.title is None
        assert summary.is_partial is True

    def test_detail_shape_document(self):
        executor = ScriptedExecutor([owner_page([])])
        list(OwnerScopedEnumeration(executor, "alice"))
        assert executor.calls[0].document == OWNER_PULL_REQUESTS

    def test_no_labels_sends_null(self):
        executor = ScriptedExecutor([owner_page([])])
        list(OwnerScopedEnumeration(executor, "alice"))
        assert executor.calls[0].variables["labels"] is None

    def test_item_cap(self):
        """Stops at max_items without requesting the next page."""
        executor = ScriptedExecutor(
            [owner_page(numbered(1, 20), has_next=True, end_cursor="C1")]
        )
        strategy = OwnerScopedEnumeration(executor, "alice", max_items=5)
        assert len(list(strategy)) == 5
        assert len(executor.calls) == 1

    def test_cap_at_page_boundary_stops_fetching(self):
        executor = ScriptedExecutor(
            [owner_page(numbered(1, 20), has_next=True, end_cursor="C1")]
        )
        strategy = OwnerScopedEnumeration(executor, "alice", max_items=20)
        assert len(list(strategy)) == 20
        assert len(executor.calls) == 1

    def test_early_termination_issues_no_more_queries(self):
        """Consumer stopping mid-page never triggers the next page."""
        executor = ScriptedExecutor(
            [
                owner_page(numbered(1, 20), has_next=True, end_cursor="C1"),
                owner_page(numbered(21, 3)),
            ]
        )
        stream = iter(OwnerScopedEnumeration(executor, "alice"))
        first = [next(stream) for _ in range(3)]
        assert [s.number for s in first] == [1, 2, 3]
        assert len(executor.calls) == 1

    def test_resumes_from_tracker(self):
        """Re-iterating continues from the stored cursor."""
        executor = ScriptedExecutor(
            [
                owner_page(numbered(1, 2), has_next=True, end_cursor="C1"),
                owner_page(numbered(3, 2)),
            ]
        )
        strategy = OwnerScopedEnumeration(executor, "alice")
        stream = iter(strategy)
        next(stream)
        next(stream)
        rest = list(strategy)
        assert [s.number for s in rest] == [3, 4]
        assert executor.calls[1].cursor == "C1"

    def test_cancellation_before_next_page(self):
        """A cancelled token stops paging; the in-flight page is still yielded."""
        cancel = CancellationToken()
        executor = ScriptedExecutor(
            [
                owner_page(numbered(1, 3), has_next=True, end_cursor="C1"),
                owner_page(numbered(4, 3)),
            ]
        )
        strategy = OwnerScopedEnumeration(executor, "alice", cancel=cancel)
        seen = []
        for summary in strategy:
            seen.append(summary.number)
            cancel.cancel()
        assert seen == [1, 2, 3]
        assert len(executor.calls) == 1

    def test_malformed_node_is_skipped_with_warning(self):
        broken = {"id": "PR_x", "number": 9}  # no repository
        executor = ScriptedExecutor([owner_page([pr_node(1, title="a"), broken, None])])
        strategy = OwnerScopedEnumeration(executor, "alice")
        summaries = list(strategy)
        assert [s.number for s in summaries] == [1]
        assert len(strategy.warnings) == 1
        assert strategy.warnings[0].raw == broken

    def test_non_object_repository_is_skipped_with_warning(self):
        """A node whose repository or owner is not an object is skipped, not fatal."""
        bad_repository = {"id": "PR_x", "number": 9, "repository": "widgets"}
        bad_owner = {"id": "PR_y", "number": 10, "repository": {"name": "w", "owner": "alice"}}
        executor = ScriptedExecutor(
            [owner_page([bad_repository, pr_node(1, title="a"), bad_owner, pr_node(2, title="b")])]
        )
        strategy = OwnerScopedEnumeration(executor, "alice")
        assert [s.number for s in strategy] == [1, 2]
        assert [w.raw for w in strategy.warnings] == [bad_repository, bad_owner]

    def test_resumes_within_page(self):
        """Items left in a page by an abandoned iterator are yielded by the next one."""
        executor = ScriptedExecutor([owner_page(numbered(1, 3))])
        strategy = OwnerScopedEnumeration(executor, "alice")
        stream = iter(strategy)
        assert next(stream).number == 1
        stream.close()
        assert [s.number for s in strategy] == [2, 3]
        assert strategy.buffered == 0
        assert len(executor.calls) == 1

    def test_missing_user_yields_nothing(self):
        executor = ScriptedExecutor([{"user": None}])
        strategy = OwnerScopedEnumeration(executor, "nobody")
        assert list(strategy) == []
        assert strategy.tracker.exhausted is True
        assert len(strategy.warnings) == 1

    def test_transport_error_becomes_discovery_error(self):
        executor = ScriptedExecutor(
            [
                owner_page(numbered(1, 2), has_next=True, end_cursor="C1"),
                RateLimitError("slow down"),
            ]
        )
        strategy = OwnerScopedEnumeration(executor, "alice")
        stream = iter(strategy)
        assert next(stream).number == 1
        assert next(stream).number == 2
        with pytest.raises(DiscoveryError) as exc_info:
            next(stream)
        assert exc_info.value.strategy == "owner:alice"
        assert exc_info.value.cursor_at_failure == "C1"
        assert isinstance(exc_info.value.__cause__, TransportError)
        assert len(executor.calls) == 2

    def test_missing_cursor_raises_protocol_error(self):
        executor = ScriptedExecutor([owner_page(numbered(1, 2), has_next=True, end_cursor=None)])
        with pytest.raises(ProtocolError):
            list(OwnerScopedEnumeration(executor, "alice"))
        assert len(executor.calls) == 1

    def test_missing_connection_raises_protocol_error(self):
        executor = ScriptedExecutor([{"user": {}}])
        with pytest.raises(ProtocolError):
            list(OwnerScopedEnumeration(executor, "alice"))

    def test_empty_owner_rejected(self):
        with pytest.raises(ValueError):
            OwnerScopedEnumeration(ScriptedExecutor(), "")


class TestSearchScopedEnumeration:
    """Tests for SearchScopedEnumeration."""

    def test_page_sizes_by_shape(self):
        executor = ScriptedExecutor()
        assert SearchScopedEnumeration(executor, "is:pr").page_size == 10
        identity = SearchScopedEnumeration(executor, "is:pr", shape=QueryShape.IDENTITY)
        assert identity.page_size == 20

    def test_documents_by_shape(self):
        executor = ScriptedExecutor([search_page([]), search_page([])])
        list(SearchScopedEnumeration(executor, "is:pr"))
        list(SearchScopedEnumeration(executor, "is:pr", shape=QueryShape.IDENTITY))
        assert executor.calls[0].document == SEARCH_PULL_REQUESTS
        assert executor.calls[1].document == SEARCH_PULL_REQUEST_IDS
        assert executor.calls[0].variables == {"query": "is:pr"}

    def test_issue_count_is_advisory(self):
        """issueCount overcounting never causes extra queries."""
        executor = ScriptedExecutor([search_page(numbered(1, 3), issue_count=50)])
        strategy = SearchScopedEnumeration(executor, "is:pr review-requested:@me")
        assert len(list(strategy)) == 3
        assert strategy.issue_count == 50
        assert len(executor.calls) == 1

    def test_skips_non_pull_request_results(self):
        executor = ScriptedExecutor(
            [
                search_page(
                    [
                        pr_node(1, title="a", typename="PullRequest"),
                        {"__typename": "Issue"},
                        {},
                        pr_node(2, title="b", typename="PullRequest"),
                    ]
                )
            ]
        )
        strategy = SearchScopedEnumeration(executor, "is:pr")
        assert [s.number for s in strategy] == [1, 2]
        assert strategy.warnings == []

    def test_paginates_with_cursor(self):
        executor = ScriptedExecutor(
            [
                search_page(numbered(1, 10), has_next=True, end_cursor="S1"),
                search_page(numbered(11, 1)),
            ]
        )
        strategy = SearchScopedEnumeration(executor, "is:pr")
        assert len(list(strategy)) == 11
        assert [call.cursor for call in executor.calls] == [None, "S1"]

    def test_missing_search_connection(self):
        executor = ScriptedExecutor([{}])
        with pytest.raises(ProtocolError):
            list(SearchScopedEnumeration(executor, "is:pr"))

    def test_empty_expression_rejected(self):
        with pytest.raises(ValueError):
            SearchScopedEnumeration(ScriptedExecutor(), "  ")
