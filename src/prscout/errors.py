"""Exception hierarchy for prscout."""

from __future__ import annotations


class PRScoutError(Exception):
    """Base exception for prscout errors."""

    pass


class TransportError(PRScoutError):
    """The query executor failed (network, HTTP or GraphQL error)."""

    pass


class AuthError(TransportError):
    """Authentication failed."""

    pass


class ForbiddenError(TransportError):
    """Permission denied."""

    pass


class RateLimitError(TransportError):
    """Rate limit exceeded."""

    pass


class NotFoundError(PRScoutError):
    """Requested entity does not exist upstream.

    Callers usually treat this as "skip" rather than a failure.
    """

    def __init__(
        self,
        message: str,
        owner: str | None = None,
        repository_name: str | None = None,
        number: int | None = None,
    ) -> None:
        super().__init__(message)
        self.owner = owner
        self.repository_name = repository_name
        self.number = number


class ProtocolError(PRScoutError):
    """Upstream response violated the API contract.

    Raised for missing required fields and inconsistent pagination state.
    Never retried locally.
    """

    pass


class DiscoveryError(PRScoutError):
    """A discovery strategy failed while fetching a page."""

    def __init__(self, strategy: str, cursor_at_failure: str | None, message: str) -> None:
        super().__init__(f"{strategy}: {message} (cursor={cursor_at_failure!r})")
        self.strategy = strategy
        self.cursor_at_failure = cursor_at_failure
