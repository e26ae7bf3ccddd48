"""Data models."""

from .pull_request import (
    GHOST_LOGIN,
    Actor,
    CanonicalKey,
    Comment,
    CommentThread,
    PullRequestDetail,
    PullRequestIdentity,
    PullRequestSummary,
    RepositoryOwner,
)
from .status import (
    CheckConclusion,
    CheckOutcome,
    CheckRun,
    CheckStatus,
    DecodeWarning,
    LegacyStatus,
    StatusCheck,
    StatusRollup,
    StatusState,
    UnknownCheck,
)

__all__ = [
    "GHOST_LOGIN",
    "Actor",
    "CanonicalKey",
    "CheckConclusion",
    "CheckOutcome",
    "CheckRun",
    "CheckStatus",
    "Comment",
    "CommentThread",
    "DecodeWarning",
    "LegacyStatus",
    "PullRequestDetail",
    "PullRequestIdentity",
    "PullRequestSummary",
    "RepositoryOwner",
    "StatusCheck",
    "StatusRollup",
    "StatusState",
    "UnknownCheck",
]
