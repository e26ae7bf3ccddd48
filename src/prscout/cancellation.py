"""Cooperative cancellation for discovery and detail fetching."""

from __future__ import annotations

import threading


class CancellationToken:
    """Signal that stops further page requests.

    Components check the token before issuing a query; a query that is
    already in flight is allowed to finish and its results are still used.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or the timeout elapses."""
        return self._event.wait(timeout)
