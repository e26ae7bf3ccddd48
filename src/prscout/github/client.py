"""GitHub GraphQL API client."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import time
from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import AuthError, ForbiddenError, NotFoundError, RateLimitError, TransportError

logger = logging.getLogger(__name__)


class GitHubClient:
    """GitHub GraphQL API client.

    Implements the ``QueryExecutor`` protocol on top of httpx:
    - Token authentication (from env var or gh CLI)
    - Enterprise support via custom base_url
    - HTTP and GraphQL error mapping onto the prscout error taxonomy

    The client never retries; wrap it if a retry policy is needed.
    """

    def __init__(self, token: str, base_url: str = "api.github.com", timeout: float = 30.0):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            base_url: API base URL (default: api.github.com, use custom for Enterprise)
            timeout: Request timeout in seconds
        """
        self.token = token
        self.base_url = base_url
        self._graphql_url = f"https://{base_url}/graphql"
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @classmethod
    def from_environment(
        cls, base_url: str = "api.github.com", timeout: float = 30.0
    ) -> GitHubClient:
        """Create a client from environment variables or gh CLI.

        Tries in order:
        1. GITHUB_TOKEN environment variable
        2. gh auth token (if gh CLI is installed and authenticated)

        Raises:
            AuthError: If no token is available
        """
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            logger.debug("Using token from GITHUB_TOKEN environment variable")
            return cls(token, base_url, timeout)

        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                check=True,
            )
            token = result.stdout.strip()
            if token:
                logger.debug("Using token from gh CLI")
                return cls(token, base_url, timeout)
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("gh CLI not available or not authenticated")

        logger.error("No GitHub token found")
        raise AuthError(
            "No GitHub token found. Either:\n"
            "  - Set GITHUB_TOKEN environment variable\n"
            "  - Run 'gh auth login' to authenticate with GitHub CLI"
        )

    def execute(
        self,
        document: str,
        variables: Mapping[str, Any] | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query.

        Args:
            document: GraphQL query string
            variables: Query variables
            cursor: Pagination cursor, sent as the ``cursor`` variable when given

        Returns:
            Response data (the 'data' field from GraphQL response)

        Raises:
            AuthError: Authentication failed
            NotFoundError: Resource not found
            ForbiddenError: Permission denied
            RateLimitError: Rate limit exceeded
            TransportError: Other errors
        """
        op_match = re.search(r"(?:query|mutation)\s+(\w+)", document)
        op_name = op_match.group(1) if op_match else "anonymous"

        query_vars = dict(variables or {})
        if cursor is not None:
            query_vars["cursor"] = cursor

        payload: dict[str, Any] = {"query": document}
        if query_vars:
            payload["variables"] = query_vars

        logger.debug("GraphQL %s: variables=%s", op_name, query_vars)

        start_time = time.monotonic()
        try:
            response = self._client.post(self._graphql_url, json=payload)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("GraphQL %s failed after %.0fms: %s", op_name, elapsed_ms, e)
            raise TransportError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if response.status_code == 401:
            logger.error("GraphQL %s: 401 Unauthorized (%.0fms)", op_name, elapsed_ms)
            raise AuthError("Authentication failed. Check your GITHUB_TOKEN.")
        if response.status_code == 403:
            if "rate limit" in response.text.lower():
                logger.error("GraphQL %s: 403 Rate Limited (%.0fms)", op_name, elapsed_ms)
                raise RateLimitError("GitHub API rate limit exceeded. Try again later.")
            logger.error("GraphQL %s: 403 Forbidden (%.0fms)", op_name, elapsed_ms)
            raise ForbiddenError(
                "Permission denied. Check that your token has the 'repo' and 'read:org' scopes."
            )
        if response.status_code == 404:
            logger.error("GraphQL %s: 404 Not Found (%.0fms)", op_name, elapsed_ms)
            raise NotFoundError("Resource not found")

        if response.status_code >= 400:
            logger.error("GraphQL %s: HTTP %d (%.0fms)", op_name, response.status_code, elapsed_ms)
            raise TransportError(f"HTTP {response.status_code}: {response.text}")

        try:
            result = response.json()
        except ValueError as e:
            logger.error("GraphQL %s: Invalid JSON response (%.0fms)", op_name, elapsed_ms)
            raise TransportError(f"Invalid JSON response: {e}") from e

        if "errors" in result:
            errors = result["errors"]
            error_messages = [e.get("message", str(e)) for e in errors]

            for error in errors:
                error_type = error.get("type", "")
                message = error.get("message", "")

                if error_type == "NOT_FOUND":
                    logger.info(
                        "GraphQL %s: Not Found - %s (%.0fms)", op_name, message, elapsed_ms
                    )
                    raise NotFoundError(message)
                if error_type == "FORBIDDEN":
                    logger.error(
                        "GraphQL %s: Forbidden - %s (%.0fms)", op_name, message, elapsed_ms
                    )
                    raise ForbiddenError(message)
                if error_type == "RATE_LIMITED":
                    logger.error(
                        "GraphQL %s: Rate Limited - %s (%.0fms)", op_name, message, elapsed_ms
                    )
                    raise RateLimitError(message)

            logger.error("GraphQL %s: errors=%s (%.0fms)", op_name, error_messages, elapsed_ms)
            raise TransportError(f"GraphQL errors: {'; '.join(error_messages)}")

        logger.info("GraphQL %s: 200 OK (%.0fms)", op_name, elapsed_ms)
        return result.get("data") or {}
