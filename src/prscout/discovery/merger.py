"""Merge and deduplicate summaries from several discovery strategies.

The merger is the only component holding shared mutable state during a
discovery request: the seen index and the retained summaries. Both are
guarded by one lock. The working set grows with the number of unique pull
requests seen (O(n)), which is bounded by the strategies' item caps.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Hashable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..cancellation import CancellationToken
from ..errors import DiscoveryError, PRScoutError, ProtocolError
from ..models import CanonicalKey, PullRequestIdentity, PullRequestSummary
from .strategies import DiscoveryStrategy

logger = logging.getLogger(__name__)

# Failures that end one strategy without affecting the others
STRATEGY_FAILURES = (DiscoveryError, ProtocolError)

_DONE = object()

# Seconds to wait for each producer thread when a concurrent merge ends
PRODUCER_JOIN_TIMEOUT = 5.0


class MergePrecedence(str, Enum):
    """Which summary's fields are retained when strategies report the same pull request."""

    PRIORITY = "priority"  # earlier strategy in the list wins
    FIRST_SEEN = "first_seen"  # whichever arrived first wins


@dataclass(frozen=True)
class StrategyFailure:
    """A strategy stream that ended with an error."""

    strategy: str
    error: PRScoutError


def _fill_missing(preferred: PullRequestSummary, other: PullRequestSummary) -> PullRequestSummary:
    """Keep ``preferred`` fields, taking any field it lacks from ``other``."""
    update: dict[str, Any] = {}
    if preferred.title is None and other.title is not None:
        update["title"] = other.title
    if preferred.created_at is None and other.created_at is not None:
        update["created_at"] = other.created_at
    if preferred.number is None and other.number is not None:
        update["number"] = other.number
    if preferred.owner.id is None and other.owner.id is not None:
        update["owner"] = preferred.owner.model_copy(update={"id": other.owner.id})
    if not update:
        return preferred
    return preferred.model_copy(update=update)


class ResultMerger:
    """Interleaves strategy streams into one stream of unique pull requests.

    Strategies are given in priority order (index 0 highest). Each unique
    pull request is yielded once, as the first summary seen for it. The
    precedence-resolved summary, with fields from the preferred strategy and
    gaps filled from the others, is available from ``retained`` and
    ``results`` as the merge progresses.

    A strategy that fails is recorded in ``failures`` and dropped; the
    remaining strategies and already-yielded output are unaffected.
    """

    def __init__(
        self,
        strategies: Sequence[DiscoveryStrategy],
        precedence: MergePrecedence = MergePrecedence.PRIORITY,
        cancel: CancellationToken | None = None,
    ) -> None:
        if not strategies:
            raise ValueError("At least one strategy is required")
        self.strategies = list(strategies)
        self.precedence = precedence
        self.cancel = cancel
        self.failures: list[StrategyFailure] = []

        self._lock = threading.Lock()
        self._index: dict[Hashable, CanonicalKey] = {}  # canonical key or ("id", id) -> primary key
        self._retained: dict[CanonicalKey, tuple[int, PullRequestSummary]] = {}
        self._duplicates = 0

    # --- Public API ---

    def __iter__(self) -> Iterator[PullRequestSummary]:
        return self.merge()

    @property
    def seen_count(self) -> int:
        with self._lock:
            return len(self._retained)

    @property
    def duplicate_count(self) -> int:
        with self._lock:
            return self._duplicates

    def retained(self, identity: PullRequestIdentity) -> PullRequestSummary | None:
        """Precedence-resolved summary for a pull request seen so far."""
        with self._lock:
            key = self._lookup(identity)
            if key is None:
                return None
            return self._retained[key][1]

    def results(self) -> list[PullRequestSummary]:
        """All retained summaries in first-seen order."""
        with self._lock:
            return [summary for _, summary in self._retained.values()]

    def raise_failures(self) -> None:
        """Re-raise the first recorded strategy failure, if any."""
        if self.failures:
            raise self.failures[0].error

    def merge(self) -> Iterator[PullRequestSummary]:
        """Pull one item from each live strategy in turn, in priority order.

        Stopping iteration early leaves the strategies suspended; no further
        pages are requested. On cancellation, pages already fetched are
        still drained, and no strategy requests another page.
        """
        streams = [
            (priority, strategy, iter(strategy))
            for priority, strategy in enumerate(self.strategies)
        ]
        active = list(streams)
        try:
            while active:
                for entry in list(active):
                    priority, strategy, stream = entry
                    if self._cancelled() and not strategy.buffered:
                        logger.debug("Merge cancelled: stopping %s", strategy.name)
                        active.remove(entry)
                        continue

                    try:
                        summary = next(stream)
                    except StopIteration:
                        active.remove(entry)
                        continue
                    except STRATEGY_FAILURES as e:
                        self._record_failure(strategy, e)
                        active.remove(entry)
                        continue

                    if self._admit(priority, summary):
                        yield summary
        finally:
            for _, _, stream in streams:
                close = getattr(stream, "close", None)
                if close is not None:
                    close()
            self._log_summary()

    def merge_concurrent(self, max_buffer: int = 50) -> Iterator[PullRequestSummary]:
        """Run each strategy on its own thread and merge as items arrive.

        Producers feed one bounded channel; this generator is the single
        consumer. Closing the generator stops producers before their next
        page request and waits up to ``PRODUCER_JOIN_TIMEOUT`` seconds for
        them to exit. On cancellation, pages already fetched are still
        yielded.
        """
        channel: queue.Queue[tuple[int, DiscoveryStrategy, Any]] = queue.Queue(maxsize=max_buffer)
        stop = threading.Event()
        threads = [
            threading.Thread(
                target=self._produce,
                args=(priority, strategy, channel, stop),
                name=f"prscout-{strategy.name}",
                daemon=True,
            )
            for priority, strategy in enumerate(self.strategies)
        ]
        for thread in threads:
            thread.start()

        remaining = len(threads)
        try:
            while remaining:
                priority, strategy, item = channel.get()
                if item is _DONE:
                    remaining -= 1
                elif isinstance(item, STRATEGY_FAILURES):
                    self._record_failure(strategy, item)
                    remaining -= 1
                elif isinstance(item, BaseException):
                    raise item
                elif self._admit(priority, item):
                    yield item
        finally:
            stop.set()
            for thread in threads:
                thread.join(timeout=PRODUCER_JOIN_TIMEOUT)
                if thread.is_alive():
                    logger.warning("Producer %s still running after close", thread.name)
            self._log_summary()

    # --- Internals ---

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.cancelled

    def _produce(
        self,
        priority: int,
        strategy: DiscoveryStrategy,
        channel: queue.Queue[tuple[int, DiscoveryStrategy, Any]],
        stop: threading.Event,
    ) -> None:
        outcome: Any = _DONE
        try:
            for summary in strategy:
                if not self._put(channel, (priority, strategy, summary), stop):
                    return
                if stop.is_set() or (self._cancelled() and not strategy.buffered):
                    break
        except Exception as e:
            outcome = e
        self._put(channel, (priority, strategy, outcome), stop)

    @staticmethod
    def _put(
        channel: queue.Queue[tuple[int, DiscoveryStrategy, Any]],
        item: tuple[int, DiscoveryStrategy, Any],
        stop: threading.Event,
    ) -> bool:
        while not stop.is_set():
            try:
                channel.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def _lookup(self, identity: PullRequestIdentity) -> CanonicalKey | None:
        key = self._index.get(identity.canonical_key)
        if key is None:
            key = self._index.get(("id", identity.id))
        return key

    def _admit(self, priority: int, summary: PullRequestSummary) -> bool:
        """Record a summary; True if it is the first for its pull request."""
        with self._lock:
            key = self._lookup(summary)
            if key is None:
                key = summary.canonical_key
                self._retained[key] = (priority, summary)
                self._index[key] = key
                self._index[("id", summary.id)] = key
                return True

            self._duplicates += 1
            current_priority, current = self._retained[key]
            if self.precedence == MergePrecedence.PRIORITY and priority < current_priority:
                self._retained[key] = (priority, _fill_missing(summary, current))
            else:
                self._retained[key] = (current_priority, _fill_missing(current, summary))
            # Later summaries may carry a number the first one lacked
            self._index.setdefault(summary.canonical_key, key)
            self._index.setdefault(("id", summary.id), key)
            logger.debug("Duplicate %s from priority %d", summary.reference, priority)
            return False

    def _record_failure(self, strategy: DiscoveryStrategy, error: PRScoutError) -> None:
        logger.error("Strategy %s stopped: %s", strategy.name, error)
        self.failures.append(StrategyFailure(strategy=strategy.name, error=error))

    def _log_summary(self) -> None:
        logger.info(
            "Merged %d unique pull requests (%d duplicates, %d failed strategies)",
            self.seen_count,
            self.duplicate_count,
            len(self.failures),
        )
