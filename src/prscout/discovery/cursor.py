"""Per-strategy pagination state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import ProtocolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageCursorState:
    """Pagination state of one strategy.

    ``cursor=None, exhausted=False`` is the initial state; ``exhausted=True``
    is terminal.
    """

    cursor: str | None = None
    exhausted: bool = False


class PageCursorTracker:
    """Tracks the cursor of one paginated connection.

    The ``endCursor`` of a page is only trusted while ``hasNextPage`` is
    true; a stale cursor is never carried past the last page.
    """

    def __init__(self) -> None:
        self._state = PageCursorState()
        self._pages_seen = 0

    @property
    def state(self) -> PageCursorState:
        return self._state

    @property
    def cursor(self) -> str | None:
        return self._state.cursor

    @property
    def exhausted(self) -> bool:
        return self._state.exhausted

    @property
    def has_more(self) -> bool:
        return not self._state.exhausted

    @property
    def pages_seen(self) -> int:
        return self._pages_seen

    def advance(self, page_info: Mapping[str, Any]) -> PageCursorState:
        """Record a received page and compute the next state.

        Args:
            page_info: GraphQL ``pageInfo`` mapping with ``hasNextPage`` and ``endCursor``

        Returns:
            The new state

        Raises:
            ProtocolError: If the page claims more results without a cursor,
                or the tracker is already exhausted
        """
        if self._state.exhausted:
            raise ProtocolError("Received a page after pagination was exhausted")

        has_next = page_info.get("hasNextPage")
        if not isinstance(has_next, bool):
            raise ProtocolError(f"pageInfo.hasNextPage missing or not a boolean: {has_next!r}")

        end_cursor = page_info.get("endCursor")
        if has_next and not end_cursor:
            raise ProtocolError("pageInfo.hasNextPage is true but endCursor is empty")

        self._pages_seen += 1
        if has_next:
            self._state = PageCursorState(cursor=end_cursor, exhausted=False)
        else:
            self._state = PageCursorState(cursor=None, exhausted=True)

        logger.debug(
            "Page %d: has_next=%s cursor=%s", self._pages_seen, has_next, self._state.cursor
        )
        return self._state
