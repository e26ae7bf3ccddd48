"""Discovery facade wiring strategies, merger and detail fetcher together."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from .cancellation import CancellationToken
from .config import Settings
from .detail import DetailFetcher
from .discovery import (
    DiscoveryStrategy,
    MergePrecedence,
    OwnerScopedEnumeration,
    QueryShape,
    ResultMerger,
    ReviewSearch,
    SearchScopedEnumeration,
)
from .executor import QueryExecutor
from .github import GitHubClient
from .models import PullRequestDetail, PullRequestIdentity

logger = logging.getLogger(__name__)


class PullRequestDiscovery:
    """Entry point for discovering pull requests and fetching their detail.

    Holds no state between requests; each ``discover`` call builds fresh
    strategies and a fresh merger.
    """

    def __init__(self, executor: QueryExecutor, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            executor: Query executor used for every request
            settings: Client settings (defaults from environment)
        """
        self._executor = executor
        self.settings = settings or Settings()
        self._fetcher = DetailFetcher(executor)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PullRequestDiscovery:
        """Create a service backed by a ``GitHubClient`` built from the environment."""
        settings = settings or Settings()
        client = GitHubClient.from_environment(settings.base_url, settings.timeout)
        return cls(client, settings)

    def close(self) -> None:
        """Close the executor if it holds resources."""
        close = getattr(self._executor, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> PullRequestDiscovery:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def discover(
        self,
        owner: str | None = None,
        labels: Iterable[str] | None = None,
        search: str | ReviewSearch | None = None,
        shape: QueryShape = QueryShape.DETAIL,
        precedence: MergePrecedence | None = None,
        cancel: CancellationToken | None = None,
    ) -> ResultMerger:
        """Build a merged discovery stream.

        When both ``owner`` and ``search`` are given, owner-scoped results take
        priority over search results.

        Args:
            owner: Account whose open pull requests are enumerated
            labels: Label filter for the owner enumeration
            search: Search expression or ``ReviewSearch``
            shape: Query shape (identity-only is cheaper)
            precedence: Merge precedence (defaults to settings)
            cancel: Token stopping further page requests

        Returns:
            A merger; iterate it to stream unique summaries.

        Raises:
            ValueError: If neither owner nor search is given, or labels
                are given without an owner
        """
        if owner is None and search is None:
            raise ValueError("Discovery requires an owner, a search, or both")
        if labels and owner is None:
            raise ValueError("labels filter the owner enumeration; pass owner as well")

        strategies: list[DiscoveryStrategy] = []
        if owner is not None:
            strategies.append(
                OwnerScopedEnumeration(
                    self._executor,
                    owner,
                    labels=labels,
                    shape=shape,
                    max_items=self.settings.max_items,
                    cancel=cancel,
                )
            )
        if search is not None:
            expression = search.to_expression() if isinstance(search, ReviewSearch) else search
            strategies.append(
                SearchScopedEnumeration(
                    self._executor,
                    expression,
                    shape=shape,
                    max_items=self.settings.max_items,
                    cancel=cancel,
                )
            )

        logger.info("Discovering with %s", ", ".join(s.name for s in strategies))
        return ResultMerger(
            strategies,
            precedence=precedence or self.settings.merge_precedence,
            cancel=cancel,
        )

    def fetch_detail(self, identity: PullRequestIdentity) -> PullRequestDetail:
        """Fetch detail for one pull request.

        Raises:
            NotFoundError: The pull request no longer exists
        """
        return self._fetcher.fetch_identity(identity)

    def fetch_details(
        self,
        identities: Iterable[PullRequestIdentity],
        cancel: CancellationToken | None = None,
    ) -> Iterator[tuple[PullRequestIdentity, PullRequestDetail | None]]:
        """Fetch detail for many pull requests, bounded by ``detail_concurrency``."""
        return self._fetcher.fetch_many(
            identities,
            max_concurrency=self.settings.detail_concurrency,
            cancel=cancel,
        )

    def review_queue(
        self,
        search: ReviewSearch | None = None,
        cancel: CancellationToken | None = None,
    ) -> Iterator[PullRequestDetail]:
        """Stream detail for pull requests awaiting review.

        Discovery uses the identity-only search shape; details are fetched
        in parallel as identities arrive. Deleted pull requests are skipped.

        Raises:
            DiscoveryError: The search failed
        """
        merger = self.discover(
            search=search or ReviewSearch(), shape=QueryShape.IDENTITY, cancel=cancel
        )
        for _, detail in self.fetch_details(merger, cancel=cancel):
            if detail is not None:
                yield detail
        merger.raise_failures()
