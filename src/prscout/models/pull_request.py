"""Pull request identity, summary and detail models.

All models are immutable snapshots built from a single response. Identity
equality is based on the canonical key so the same pull request compares
equal no matter which discovery strategy produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .status import StatusRollup

# Login shown for deleted or anonymous accounts
GHOST_LOGIN = "ghost"

CanonicalKey = tuple[Any, ...]


class RepositoryOwner(BaseModel):
    """Account owning a repository."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None  # Not selected by every query shape
    login: str


class Actor(BaseModel):
    """Author of a pull request or comment."""

    model_config = ConfigDict(frozen=True)

    login: str


class PullRequestIdentity(BaseModel):
    """Canonical identity of a pull request."""

    model_config = ConfigDict(frozen=True)

    id: str  # Provider node ID, e.g. "PR_kwDO..."
    number: int | None = None
    owner: RepositoryOwner
    repository_name: str

    @property
    def canonical_key(self) -> CanonicalKey:
        """Dedup key: (owner login, repository, number), or the node ID without a number."""
        if self.number is None:
            return ("id", self.id)
        return ("pr", self.owner.login, self.repository_name, self.number)

    @property
    def reference(self) -> str:
        """Human reference in the form ``owner/repo#123``."""
        suffix = f"#{self.number}" if self.number is not None else f"@{self.id}"
        return f"{self.owner.login}/{self.repository_name}{suffix}"

    def identity(self) -> PullRequestIdentity:
        """Strip any extra fields down to a bare identity."""
        return PullRequestIdentity(
            id=self.id,
            number=self.number,
            owner=self.owner,
            repository_name=self.repository_name,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PullRequestIdentity):
            return NotImplemented
        return self.canonical_key == other.canonical_key

    def __hash__(self) -> int:
        return hash(self.canonical_key)


class PullRequestSummary(PullRequestIdentity):
    """Pull request as produced by discovery.

    Identity-only query shapes leave ``title`` and ``created_at`` unset.
    """

    title: str | None = None
    created_at: datetime | None = None

    @property
    def is_partial(self) -> bool:
        """Whether some summary fields were not provided by the query shape."""
        return self.title is None or self.created_at is None


class Comment(BaseModel):
    """Single issue comment on a pull request."""

    model_config = ConfigDict(frozen=True)

    id: str
    author: Actor | None = None
    body_text: str = ""

    @property
    def author_login(self) -> str:
        return self.author.login if self.author else GHOST_LOGIN


class CommentThread(BaseModel):
    """Most recent comments of a pull request.

    ``truncated`` is True when older comments exist that were not fetched.
    """

    model_config = ConfigDict(frozen=True)

    comments: tuple[Comment, ...] = ()
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.comments)


class PullRequestDetail(PullRequestIdentity):
    """Full pull request detail.

    ``labels`` holds at most the fetched page of labels; a pull request with
    more labels looks the same as one with exactly that many.
    """

    title: str = ""
    body_text: str = ""
    author: Actor | None = None
    labels: tuple[str, ...] = ()
    published_at: datetime | None = None
    created_at: datetime | None = None
    comments: CommentThread = Field(default_factory=CommentThread)
    status_rollup: StatusRollup | None = None

    @property
    def author_login(self) -> str:
        """Author login, or ``ghost`` when the account is gone."""
        return self.author.login if self.author else GHOST_LOGIN
