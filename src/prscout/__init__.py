"""prscout - pull request discovery and enrichment for the GitHub GraphQL API."""

from .cancellation import CancellationToken
from .detail import DetailFetcher
from .discovery import (
    MergePrecedence,
    OwnerScopedEnumeration,
    PageCursorTracker,
    QueryShape,
    ResultMerger,
    ReviewSearch,
    SearchScopedEnumeration,
)
from .errors import (
    AuthError,
    DiscoveryError,
    ForbiddenError,
    NotFoundError,
    PRScoutError,
    ProtocolError,
    RateLimitError,
    TransportError,
)
from .service import PullRequestDiscovery
from .status import StatusDecoder

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "CancellationToken",
    "DetailFetcher",
    "DiscoveryError",
    "ForbiddenError",
    "MergePrecedence",
    "NotFoundError",
    "OwnerScopedEnumeration",
    "PRScoutError",
    "PageCursorTracker",
    "ProtocolError",
    "PullRequestDiscovery",
    "QueryShape",
    "RateLimitError",
    "ResultMerger",
    "ReviewSearch",
    "SearchScopedEnumeration",
    "StatusDecoder",
    "TransportError",
]
