"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from ..discovery.merger import MergePrecedence


class Settings(BaseSettings):
    """Client settings, overridable through ``PRSCOUT_*`` environment variables."""

    base_url: str = Field(
        default="api.github.com",
        description="GitHub API host (use custom host for Enterprise)",
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )

    max_items: int | None = Field(
        default=100,
        ge=0,
        description="Maximum summaries per discovery strategy (None for no cap)",
    )

    detail_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum parallel detail fetches",
    )

    merge_precedence: MergePrecedence = Field(
        default=MergePrecedence.PRIORITY,
        description="Which strategy's fields win when results overlap",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "PRSCOUT_",
    }
