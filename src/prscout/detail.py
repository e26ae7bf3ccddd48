"""Single pull request detail fetching."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from .cancellation import CancellationToken
from .errors import NotFoundError, ProtocolError
from .executor import QueryExecutor
from .github.queries import PULL_REQUEST_DETAIL
from .models import (
    Actor,
    Comment,
    CommentThread,
    PullRequestDetail,
    PullRequestIdentity,
    RepositoryOwner,
    StatusRollup,
)
from .status import StatusDecoder
from .utils import parse_optional_iso

logger = logging.getLogger(__name__)


class DetailFetcher:
    """Fetches full detail for one pull request per query.

    Sub-lists are fixed-size and never paginated here: 5 labels, the last
    10 comments, the first 5 status contexts of the latest commit.
    Truncation is reported through flags instead.
    """

    def __init__(self, executor: QueryExecutor, decoder: StatusDecoder | None = None) -> None:
        self._executor = executor
        self._decoder = decoder or StatusDecoder()

    def fetch(self, owner: str, repository_name: str, number: int) -> PullRequestDetail:
        """Fetch a pull request by its coordinates.

        Raises:
            NotFoundError: Repository or pull request does not exist
            ProtocolError: Response lacks required fields
            TransportError: The executor failed
        """
        reference = f"{owner}/{repository_name}#{number}"
        logger.debug("Fetching pull request %s", reference)

        try:
            data = self._executor.execute(
                PULL_REQUEST_DETAIL,
                {"owner": owner, "name": repository_name, "number": number},
            )
        except NotFoundError as e:
            raise NotFoundError(
                f"Pull request {reference} not found: {e}", owner, repository_name, number
            ) from e

        repository = (data or {}).get("repository")
        if repository is None:
            raise NotFoundError(
                f"Repository {owner}/{repository_name} not found", owner, repository_name, number
            )

        pull_request = repository.get("pullRequest")
        if pull_request is None:
            raise NotFoundError(
                f"Pull request {reference} not found", owner, repository_name, number
            )

        detail = self._decode(repository, pull_request, owner, repository_name)
        rollup = detail.status_rollup
        logger.info(
            "Fetched %s: %d labels, %d comments, %s checks",
            reference,
            len(detail.labels),
            len(detail.comments),
            "no" if rollup is None else len(rollup.checks),
        )
        return detail

    def fetch_identity(self, identity: PullRequestIdentity) -> PullRequestDetail:
        """Fetch detail for a discovered pull request."""
        if identity.number is None:
            raise ValueError(f"Cannot fetch detail for {identity.reference}: number unknown")
        return self.fetch(identity.owner.login, identity.repository_name, identity.number)

    def fetch_many(
        self,
        identities: Iterable[PullRequestIdentity],
        max_concurrency: int = 4,
        cancel: CancellationToken | None = None,
    ) -> Iterator[tuple[PullRequestIdentity, PullRequestDetail | None]]:
        """Fetch detail for many pull requests on a bounded thread pool.

        Results are yielded in input order. Pull requests that no longer
        exist, or whose number is unknown, yield ``None``. ``identities`` is consumed lazily, so a
        discovery stream can be passed directly. On cancellation, queued
        fetches are dropped and running ones are allowed to finish.

        Raises:
            ProtocolError: A response lacked required fields
            TransportError: The executor failed
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        pending: deque[tuple[PullRequestIdentity, Future[PullRequestDetail | None]]] = deque()
        with ThreadPoolExecutor(
            max_workers=max_concurrency, thread_name_prefix="prscout-detail"
        ) as pool:
            try:
                for identity in identities:
                    if cancel is not None and cancel.cancelled:
                        break
                    pending.append((identity, pool.submit(self._fetch_or_skip, identity)))
                    if len(pending) >= max_concurrency:
                        done_identity, future = pending.popleft()
                        yield done_identity, future.result()

                while pending:
                    if cancel is not None and cancel.cancelled:
                        logger.debug("Detail fetch cancelled with %d queued", len(pending))
                        break
                    done_identity, future = pending.popleft()
                    yield done_identity, future.result()
            finally:
                for _, future in pending:
                    future.cancel()

    def _fetch_or_skip(self, identity: PullRequestIdentity) -> PullRequestDetail | None:
        if identity.number is None:
            logger.warning("Skipping %s: number unknown", identity.reference)
            return None
        try:
            return self.fetch_identity(identity)
        except NotFoundError as e:
            logger.info("Skipping %s: %s", identity.reference, e)
            return None

    # --- Decoding ---

    def _decode(
        self,
        repository: dict[str, Any],
        pull_request: dict[str, Any],
        owner: str,
        repository_name: str,
    ) -> PullRequestDetail:
        missing = [name for name in ("id", "number") if pull_request.get(name) is None]
        if missing:
            raise ProtocolError(f"Pull request response missing fields: {', '.join(missing)}")

        repo_owner = repository.get("owner") or {}
        try:
            return PullRequestDetail(
                id=pull_request["id"],
                number=pull_request["number"],
                owner=RepositoryOwner(
                    id=repo_owner.get("id"), login=repo_owner.get("login") or owner
                ),
                repository_name=repository.get("name") or repository_name,
                title=pull_request.get("title") or "",
                body_text=pull_request.get("bodyText") or "",
                author=self._actor(pull_request.get("author")),
                labels=self._labels(pull_request.get("labels")),
                published_at=parse_optional_iso(pull_request.get("publishedAt")),
                created_at=parse_optional_iso(pull_request.get("createdAt")),
                comments=self._comments(pull_request.get("comments")),
                status_rollup=self._rollup(pull_request.get("commits")),
            )
        except ValidationError as e:
            raise ProtocolError(f"Malformed pull request response: {e}") from e

    @staticmethod
    def _actor(raw: dict[str, Any] | None) -> Actor | None:
        if not raw or not raw.get("login"):
            return None
        return Actor(login=raw["login"])

    @staticmethod
    def _labels(raw: dict[str, Any] | None) -> tuple[str, ...]:
        nodes = (raw or {}).get("nodes") or []
        names = (node.get("name") for node in nodes if node)
        # Ordered and unique
        return tuple(dict.fromkeys(name for name in names if name))

    def _comments(self, raw: dict[str, Any] | None) -> CommentThread:
        if not raw:
            return CommentThread()

        comments = []
        for node in raw.get("nodes") or []:
            if not node:
                continue
            if not node.get("id"):
                logger.warning("Skipping comment without id")
                continue
            comments.append(
                Comment(
                    id=node["id"],
                    author=self._actor(node.get("author")),
                    body_text=node.get("bodyText") or "",
                )
            )

        page_info = raw.get("pageInfo") or {}
        return CommentThread(
            comments=tuple(comments),
            truncated=bool(page_info.get("hasPreviousPage", False)),
        )

    def _rollup(self, raw_commits: dict[str, Any] | None) -> StatusRollup | None:
        nodes = [node for node in (raw_commits or {}).get("nodes") or [] if node]
        if not nodes:
            return None
        commit = nodes[-1].get("commit") or {}
        return self._decoder.decode_rollup(commit.get("statusCheckRollup"))
