"""Query executor protocol."""

from collections.abc import Mapping
from typing import Any, Protocol


class QueryExecutor(Protocol):
    """Interface for running a GraphQL document against the provider.

    Implementations own transport, authentication and any retry policy.
    ``prscout.github.GitHubClient`` is the default implementation.
    """

    def execute(
        self,
        document: str,
        variables: Mapping[str, Any],
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Run a query document.

        Args:
            document: GraphQL query string
            variables: Query variables (without the cursor)
            cursor: Pagination cursor, sent as the ``cursor`` variable

        Returns:
            The decoded ``data`` payload.

        Raises:
            TransportError: Network, HTTP or GraphQL failure
            NotFoundError: The provider reported the resource as missing
        """
        ...
