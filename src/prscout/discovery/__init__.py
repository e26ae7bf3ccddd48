"""Pull request discovery package."""

from .cursor import PageCursorState, PageCursorTracker
from .merger import MergePrecedence, ResultMerger, StrategyFailure
from .search import ReviewSearch
from .strategies import (
    DiscoveryStrategy,
    OwnerScopedEnumeration,
    QueryShape,
    SearchScopedEnumeration,
)

__all__ = [
    "DiscoveryStrategy",
    "MergePrecedence",
    "OwnerScopedEnumeration",
    "PageCursorState",
    "PageCursorTracker",
    "QueryShape",
    "ResultMerger",
    "ReviewSearch",
    "SearchScopedEnumeration",
    "StrategyFailure",
]
