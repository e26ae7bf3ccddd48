"""Status check models for the CI rollup of a pull request.

A rollup entry is a discriminated union over the upstream variants. The
discriminator field is ``kind``, which uses Literal types for type
narrowing support:

- ``status_context``: legacy commit status (:class:`LegacyStatus`)
- ``check_run``: modern check run (:class:`CheckRun`)
- ``unknown``: anything the decoder did not recognize (:class:`UnknownCheck`)
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StatusState(str, Enum):
    """State of a legacy commit status."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ERROR = "ERROR"
    PENDING = "PENDING"
    EXPECTED = "EXPECTED"
    UNKNOWN = "UNKNOWN"  # Value not recognized by this client


class CheckStatus(str, Enum):
    """Lifecycle status of a check run."""

    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    REQUESTED = "REQUESTED"
    WAITING = "WAITING"
    UNKNOWN = "UNKNOWN"


class CheckConclusion(str, Enum):
    """Final result of a completed check run."""

    ACTION_REQUIRED = "ACTION_REQUIRED"
    CANCELLED = "CANCELLED"
    FAILURE = "FAILURE"
    NEUTRAL = "NEUTRAL"
    SKIPPED = "SKIPPED"
    STALE = "STALE"
    STARTUP_FAILURE = "STARTUP_FAILURE"
    SUCCESS = "SUCCESS"
    TIMED_OUT = "TIMED_OUT"
    UNKNOWN = "UNKNOWN"


class CheckOutcome(str, Enum):
    """Normalized outcome shared by every status check variant."""

    SUCCESS = "success"
    PENDING = "pending"
    FAILURE = "failure"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


def _display(value: str) -> str:
    """Turn an upstream enum value into display text ("IN_PROGRESS" -> "in progress")."""
    return value.replace("_", " ").lower()


class DecodeWarning(BaseModel):
    """Non-fatal problem found while decoding a response node."""

    model_config = ConfigDict(frozen=True)

    message: str
    raw: Any = None


class LegacyStatus(BaseModel):
    """Commit status posted through the legacy statuses API."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["status_context"] = "status_context"

    id: str
    state: StatusState
    raw_state: str  # Upstream value, kept when state is UNKNOWN
    description: str | None = None
    context: str
    warnings: tuple[DecodeWarning, ...] = ()

    @property
    def outcome(self) -> CheckOutcome:
        if self.state == StatusState.SUCCESS:
            return CheckOutcome.SUCCESS
        if self.state in (StatusState.PENDING, StatusState.EXPECTED):
            return CheckOutcome.PENDING
        if self.state in (StatusState.FAILURE, StatusState.ERROR):
            return CheckOutcome.FAILURE
        return CheckOutcome.UNKNOWN

    @property
    def label(self) -> str:
        return self.context

    @property
    def display_state(self) -> str:
        return _display(self.raw_state)


class CheckRun(BaseModel):
    """Check run reported through the checks API.

    ``conclusion`` is None until the run completes.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["check_run"] = "check_run"

    id: str
    name: str
    status: CheckStatus
    conclusion: CheckConclusion | None = None
    warnings: tuple[DecodeWarning, ...] = ()

    @property
    def outcome(self) -> CheckOutcome:
        if self.status == CheckStatus.UNKNOWN:
            return CheckOutcome.UNKNOWN
        if self.status != CheckStatus.COMPLETED or self.conclusion is None:
            return CheckOutcome.PENDING
        if self.conclusion in (
            CheckConclusion.SUCCESS,
            CheckConclusion.NEUTRAL,
            CheckConclusion.SKIPPED,
        ):
            return CheckOutcome.SUCCESS
        if self.conclusion == CheckConclusion.STALE:
            return CheckOutcome.EXPIRED
        if self.conclusion == CheckConclusion.UNKNOWN:
            return CheckOutcome.UNKNOWN
        return CheckOutcome.FAILURE

    @property
    def label(self) -> str:
        return self.name

    @property
    def display_state(self) -> str:
        if self.conclusion is None:
            return _display(self.status.value)
        return _display(self.conclusion.value)


class UnknownCheck(BaseModel):
    """Rollup entry of a variant this client does not understand."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"

    typename: str | None = None
    raw: Any = None
    warnings: tuple[DecodeWarning, ...] = ()

    @property
    def outcome(self) -> CheckOutcome:
        return CheckOutcome.UNKNOWN

    @property
    def label(self) -> str:
        return self.typename or "unknown"

    @property
    def display_state(self) -> str:
        return "unknown"


# Discriminated union of all rollup entry types
StatusCheck = Annotated[LegacyStatus | CheckRun | UnknownCheck, Field(discriminator="kind")]


class StatusRollup(BaseModel):
    """CI checks attached to the latest commit of a pull request."""

    model_config = ConfigDict(frozen=True)

    checks: tuple[StatusCheck, ...] = ()
    truncated: bool = False  # More contexts exist than were fetched
    warnings: tuple[DecodeWarning, ...] = ()

    @property
    def outcome(self) -> CheckOutcome:
        """Aggregate outcome: any failure fails, then any pending is pending."""
        outcomes = {check.outcome for check in self.checks}
        if not outcomes:
            return CheckOutcome.UNKNOWN
        for candidate in (
            CheckOutcome.FAILURE,
            CheckOutcome.PENDING,
            CheckOutcome.EXPIRED,
            CheckOutcome.UNKNOWN,
        ):
            if candidate in outcomes:
                return candidate
        return CheckOutcome.SUCCESS

    @property
    def all_warnings(self) -> tuple[DecodeWarning, ...]:
        """Rollup warnings followed by the warnings of each check."""
        collected = list(self.warnings)
        for check in self.checks:
            collected.extend(check.warnings)
        return tuple(collected)
