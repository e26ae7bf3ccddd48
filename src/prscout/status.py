"""Decoder for the polymorphic status check rollup.

Upstream rollup contexts are a union of ``StatusContext`` (legacy commit
status) and ``CheckRun``, identified by ``__typename``. Anything else, and
any recognized node missing required fields or holding wrongly typed ones,
decodes to ``UnknownCheck``
so one odd entry never fails the whole rollup.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError

from .models import (
    CheckConclusion,
    CheckRun,
    CheckStatus,
    DecodeWarning,
    LegacyStatus,
    StatusCheck,
    StatusRollup,
    StatusState,
    UnknownCheck,
)

logger = logging.getLogger(__name__)

TYPENAME_FIELD = "__typename"
LEGACY_STATUS_TYPENAME = "StatusContext"
CHECK_RUN_TYPENAME = "CheckRun"

E = TypeVar("E", bound=Enum)


class StatusDecoder:
    """Converts raw rollup nodes into normalized status checks.

    Enum values are matched case-sensitively against the upstream schema.
    Unrecognized values map to the enum's ``UNKNOWN`` member and a
    ``DecodeWarning`` is attached to the decoded check.
    """

    def decode(self, raw: Any) -> StatusCheck:
        """Decode a single rollup context node. Never raises."""
        if not isinstance(raw, dict):
            return self._unknown(None, raw, f"Rollup entry is not an object: {raw!r}")

        typename = raw.get(TYPENAME_FIELD)
        if typename == LEGACY_STATUS_TYPENAME:
            return self._decode_legacy_status(raw)
        if typename == CHECK_RUN_TYPENAME:
            return self._decode_check_run(raw)

        if typename is None:
            return self._unknown(None, raw, "Rollup entry has no __typename")
        return self._unknown(typename, raw, f"Unrecognized status check type: {typename}")

    def decode_rollup(self, raw_rollup: dict[str, Any] | None) -> StatusRollup | None:
        """Decode a ``statusCheckRollup`` object.

        Returns None when the commit has no rollup at all.
        """
        if raw_rollup is None:
            return None

        warnings: list[DecodeWarning] = []
        contexts = raw_rollup.get("contexts") or {}
        nodes = contexts.get("nodes")
        if nodes is None:
            warnings.append(DecodeWarning(message="Rollup has no contexts", raw=raw_rollup))
            logger.warning("Status rollup has no contexts")
            nodes = []

        checks = tuple(self.decode(node) for node in nodes if node is not None)
        truncated = bool((contexts.get("pageInfo") or {}).get("hasNextPage", False))

        logger.debug("Decoded %d status checks (truncated=%s)", len(checks), truncated)
        return StatusRollup(checks=checks, truncated=truncated, warnings=tuple(warnings))

    # --- Variant decoders ---

    def _decode_legacy_status(self, raw: dict[str, Any]) -> StatusCheck:
        missing = [name for name in ("id", "state", "context") if raw.get(name) is None]
        if missing:
            return self._unknown(
                LEGACY_STATUS_TYPENAME, raw, f"StatusContext missing fields: {', '.join(missing)}"
            )

        warnings: list[DecodeWarning] = []
        state = self._enum_value(StatusState, raw["state"], StatusState.UNKNOWN, raw, warnings)
        try:
            return LegacyStatus(
                id=raw["id"],
                state=state,
                raw_state=str(raw["state"]),
                description=raw.get("description"),
                context=raw["context"],
                warnings=tuple(warnings),
            )
        except ValidationError as e:
            return self._unknown(LEGACY_STATUS_TYPENAME, raw, f"Malformed StatusContext: {e}")

    def _decode_check_run(self, raw: dict[str, Any]) -> StatusCheck:
        missing = [name for name in ("id", "name", "status") if raw.get(name) is None]
        if missing:
            return self._unknown(
                CHECK_RUN_TYPENAME, raw, f"CheckRun missing fields: {', '.join(missing)}"
            )

        warnings: list[DecodeWarning] = []
        status = self._enum_value(CheckStatus, raw["status"], CheckStatus.UNKNOWN, raw, warnings)

        conclusion: CheckConclusion | None = None
        if raw.get("conclusion") is not None:
            conclusion = self._enum_value(
                CheckConclusion, raw["conclusion"], CheckConclusion.UNKNOWN, raw, warnings
            )

        try:
            return CheckRun(
                id=raw["id"],
                name=raw["name"],
                status=status,
                conclusion=conclusion,
                warnings=tuple(warnings),
            )
        except ValidationError as e:
            return self._unknown(CHECK_RUN_TYPENAME, raw, f"Malformed CheckRun: {e}")

    # --- Helpers ---

    def _enum_value(
        self,
        enum_type: type[E],
        value: Any,
        fallback: E,
        raw: dict[str, Any],
        warnings: list[DecodeWarning],
    ) -> E:
        try:
            member = enum_type(value)
        except (ValueError, TypeError):
            member = None

        if member is None or member is fallback:
            message = f"Unrecognized {enum_type.__name__} value: {value!r}"
            logger.warning(message)
            warnings.append(DecodeWarning(message=message, raw=raw))
            return fallback
        return member

    def _unknown(self, typename: str | None, raw: Any, message: str) -> UnknownCheck:
        logger.warning(message)
        return UnknownCheck(
            typename=typename,
            raw=raw,
            warnings=(DecodeWarning(message=message, raw=raw),),
        )
