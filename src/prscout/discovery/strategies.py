"""Discovery strategies producing lazy streams of pull request summaries.

Each strategy owns one ``PageCursorTracker`` and issues exactly one query
per page. Items of a page are yielded before the next page is requested,
so a caller that stops iterating never triggers another query. A fetched
page is always yielded in full, even after cancellation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

from pydantic import ValidationError

from ..cancellation import CancellationToken
from ..errors import DiscoveryError, NotFoundError, ProtocolError, TransportError
from ..executor import QueryExecutor
from ..github.queries import (
    OWNER_PAGE_SIZE,
    OWNER_PULL_REQUEST_IDS,
    OWNER_PULL_REQUESTS,
    SEARCH_DETAIL_PAGE_SIZE,
    SEARCH_IDENTITY_PAGE_SIZE,
    SEARCH_PULL_REQUEST_IDS,
    SEARCH_PULL_REQUESTS,
)
from ..models import DecodeWarning, PullRequestSummary, RepositoryOwner
from ..utils import parse_optional_iso
from .cursor import PageCursorTracker

logger = logging.getLogger(__name__)

PULL_REQUEST_TYPENAME = "PullRequest"


class QueryShape(str, Enum):
    """Which fields a discovery query selects."""

    DETAIL = "detail"  # identity plus title and createdAt
    IDENTITY = "identity"  # identity only, cheaper


class DiscoveryStrategy(ABC):
    """Base class for paginated pull request enumeration.

    Iterating a strategy resumes where the last iteration stopped: first the
    rest of the current page, then the next page from the tracker's cursor.
    """

    page_size: int

    def __init__(
        self,
        executor: QueryExecutor,
        shape: QueryShape = QueryShape.DETAIL,
        max_items: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        if max_items is not None and max_items < 0:
            raise ValueError("max_items must be non-negative")
        self._executor = executor
        self.shape = shape
        self.max_items = max_items
        self.cancel = cancel
        self.tracker = PageCursorTracker()
        self.warnings: list[DecodeWarning] = []
        self.yielded = 0
        self.queries_issued = 0
        self._buffer: deque[PullRequestSummary] = deque()  # fetched, not yet yielded

    @property
    @abstractmethod
    def name(self) -> str:
        """Label used in logs and errors."""
        ...

    @property
    @abstractmethod
    def document(self) -> str:
        """GraphQL document for the configured shape."""
        ...

    @abstractmethod
    def variables(self) -> dict[str, Any]:
        """Query variables, excluding the cursor."""
        ...

    @abstractmethod
    def _connection(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Extract the paginated connection from a response.

        Returns None when the response legitimately holds no connection.
        """
        ...

    def _accepts(self, node: dict[str, Any]) -> bool:
        """Whether a node is a pull request worth decoding."""
        return True

    @property
    def cap_reached(self) -> bool:
        return self.max_items is not None and self.yielded >= self.max_items

    @property
    def buffered(self) -> int:
        """Items of fetched pages not yet yielded."""
        return 0 if self.cap_reached else len(self._buffer)

    @property
    def finished(self) -> bool:
        return (self.tracker.exhausted and not self._buffer) or self.cap_reached

    def __iter__(self) -> Iterator[PullRequestSummary]:
        return self.summaries()

    def summaries(self) -> Iterator[PullRequestSummary]:
        """Yield summaries page by page until exhausted, capped or cancelled.

        Raises:
            DiscoveryError: The executor failed for a page
            ProtocolError: A page violated the pagination contract
        """
        while True:
            while self._buffer:
                if self.cap_reached:
                    logger.debug("%s: item cap %s reached", self.name, self.max_items)
                    return
                self.yielded += 1
                yield self._buffer.popleft()

            if self.finished:
                break
            if self.cancel is not None and self.cancel.cancelled:
                logger.debug("%s: cancelled before page %d", self.name, self.tracker.pages_seen + 1)
                return

            self._buffer.extend(self._fetch_page())

        logger.info(
            "%s: finished after %d pages, %d items", self.name, self.queries_issued, self.yielded
        )

    def _fetch_page(self) -> list[PullRequestSummary]:
        cursor = self.tracker.cursor
        logger.debug("%s: fetching page %d (cursor=%s)", self.name, self.queries_issued + 1, cursor)

        try:
            data = self._executor.execute(self.document, self.variables(), cursor)
        except (TransportError, NotFoundError) as e:
            logger.error("%s: query failed at cursor %s: %s", self.name, cursor, e)
            raise DiscoveryError(self.name, cursor, str(e)) from e
        finally:
            self.queries_issued += 1

        connection = self._connection(data or {})
        if connection is None:
            self.tracker.advance({"hasNextPage": False, "endCursor": None})
            return []

        page_info = connection.get("pageInfo")
        if not isinstance(page_info, dict):
            raise ProtocolError(f"{self.name}: response page has no pageInfo")

        summaries = self._decode_nodes(connection.get("nodes") or [])
        self.tracker.advance(page_info)

        logger.debug(
            "%s: page %d decoded %d items", self.name, self.tracker.pages_seen, len(summaries)
        )
        return summaries

    def _decode_nodes(self, nodes: Iterable[Any]) -> list[PullRequestSummary]:
        summaries = []
        for node in nodes:
            if not isinstance(node, dict) or not node:
                # Null entry or a search hit that is not a pull request
                continue
            if not self._accepts(node):
                continue
            summary = self._decode_node(node)
            if summary is not None:
                summaries.append(summary)
        return summaries

    def _decode_node(self, node: dict[str, Any]) -> PullRequestSummary | None:
        try:
            repository = node.get("repository") or {}
            owner = repository.get("owner") or {}
            return PullRequestSummary(
                id=node["id"],
                number=node.get("number"),
                owner=RepositoryOwner(id=owner.get("id"), login=owner["login"]),
                repository_name=repository["name"],
                title=node.get("title"),
                created_at=parse_optional_iso(node.get("createdAt")),
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            self._warn(f"Skipping pull request node without usable identity: {e}", node)
            return None

    def _warn(self, message: str, raw: Any = None) -> None:
        logger.warning("%s: %s", self.name, message)
        self.warnings.append(DecodeWarning(message=message, raw=raw))


class OwnerScopedEnumeration(DiscoveryStrategy):
    """Open pull requests authored by an account, optionally filtered by labels."""

    page_size = OWNER_PAGE_SIZE

    def __init__(
        self,
        executor: QueryExecutor,
        owner: str,
        labels: Iterable[str] | None = None,
        shape: QueryShape = QueryShape.DETAIL,
        max_items: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        super().__init__(executor, shape, max_items, cancel)
        if not owner:
            raise ValueError("owner cannot be empty")
        self.owner = owner
        self.labels = tuple(labels or ())

    @property
    def name(self) -> str:
        return f"owner:{self.owner}"

    @property
    def document(self) -> str:
        if self.shape == QueryShape.IDENTITY:
            return OWNER_PULL_REQUEST_IDS
        return OWNER_PULL_REQUESTS

    def variables(self) -> dict[str, Any]:
        return {"owner": self.owner, "labels": list(self.labels) or None}

    def _connection(self, data: dict[str, Any]) -> dict[str, Any] | None:
        user = data.get("user")
        if user is None:
            self._warn(f"Account '{self.owner}' not found")
            return None
        connection = user.get("pullRequests")
        if not isinstance(connection, dict):
            raise ProtocolError(f"{self.name}: response has no pullRequests connection")
        return connection


class SearchScopedEnumeration(DiscoveryStrategy):
    """Pull requests matching a provider search expression.

    ``issue_count`` reports the provider's total for progress display only;
    it may overcount and is never used to stop paging.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        query_expression: str,
        shape: QueryShape = QueryShape.DETAIL,
        max_items: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        super().__init__(executor, shape, max_items, cancel)
        if not query_expression.strip():
            raise ValueError("query_expression cannot be empty")
        self.query_expression = query_expression
        self.issue_count: int | None = None

    @property
    def page_size(self) -> int:  # type: ignore[override]
        if self.shape == QueryShape.IDENTITY:
            return SEARCH_IDENTITY_PAGE_SIZE
        return SEARCH_DETAIL_PAGE_SIZE

    @property
    def name(self) -> str:
        return f"search:{self.query_expression}"

    @property
    def document(self) -> str:
        if self.shape == QueryShape.IDENTITY:
            return SEARCH_PULL_REQUEST_IDS
        return SEARCH_PULL_REQUESTS

    def variables(self) -> dict[str, Any]:
        return {"query": self.query_expression}

    def _connection(self, data: dict[str, Any]) -> dict[str, Any] | None:
        connection = data.get("search")
        if not isinstance(connection, dict):
            raise ProtocolError(f"{self.name}: response has no search connection")
        issue_count = connection.get("issueCount")
        if isinstance(issue_count, int):
            self.issue_count = issue_count
        return connection

    def _accepts(self, node: dict[str, Any]) -> bool:
        typename = node.get("__typename")
        if typename is not None and typename != PULL_REQUEST_TYPENAME:
            logger.debug("%s: skipping %s search result", self.name, typename)
            return False
        return True
