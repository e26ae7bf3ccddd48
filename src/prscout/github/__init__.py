"""GitHub GraphQL transport and query documents."""

from .client import GitHubClient

__all__ = ["GitHubClient"]
