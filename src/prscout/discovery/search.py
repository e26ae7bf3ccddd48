"""Builder for review-queue search expressions.

Renders GitHub search syntax such as:
- "is:pr state:open review-requested:@me"
- "is:pr state:open team-review-requested:acme/platform org:acme"
- "is:pr state:open review-requested:octocat label:bug,urgent"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# login or org/team slug
REQUESTED_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*(?:/[A-Za-z0-9][A-Za-z0-9_.-]*)?$")

VALID_STATES = ("open", "closed")


@dataclass(frozen=True)
class ReviewSearch:
    """Search for pull requests awaiting review.

    ``requested`` is a user login or an ``org/team`` slug; None means the
    authenticated user. Labels are OR'd by the provider when joined with
    commas.
    """

    requested: str | None = None
    org: str | None = None
    labels: tuple[str, ...] = field(default_factory=tuple)
    state: str = "open"

    def __post_init__(self) -> None:
        if self.requested is not None:
            self.parse_requested(self.requested)
        if self.state not in VALID_STATES:
            raise ValueError(
                f"Invalid state '{self.state}'. Expected one of: {', '.join(VALID_STATES)}"
            )
        # Accept any iterable of labels
        object.__setattr__(self, "labels", tuple(self.labels))

    @staticmethod
    def parse_requested(requested: str) -> tuple[str, str | None]:
        """Split a reviewer into (login or org, team).

        Raises:
            ValueError: If the reviewer is not a login or org/team slug
        """
        if requested == "@me":
            return requested, None
        if not REQUESTED_PATTERN.match(requested):
            raise ValueError(
                f"Invalid reviewer '{requested}'. Expected a login or 'org/team'."
            )
        org, _, team = requested.partition("/")
        return org, team or None

    def reviewer_term(self) -> str:
        if self.requested is None:
            return "review-requested:@me"
        org, team = self.parse_requested(self.requested)
        if team is not None:
            return f"team-review-requested:{org}/{team}"
        return f"review-requested:{org}"

    def to_expression(self) -> str:
        """Render the search expression."""
        terms = ["is:pr", f"state:{self.state}", self.reviewer_term()]
        if self.org:
            terms.append(f"org:{self.org}")
        if self.labels:
            terms.append("label:" + ",".join(_quote(label) for label in self.labels))
        return " ".join(terms)

    def __str__(self) -> str:
        return self.to_expression()


def _quote(label: str) -> str:
    """Quote labels containing spaces."""
    if " " in label:
        return f'"{label}"'
    return label
