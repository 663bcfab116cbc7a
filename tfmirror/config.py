"""Runtime configuration — env-driven defaults for the mirror commands.

Reads ``TFMIRROR_*`` environment variables and an optional ``.env`` file.
Command-line flags override these values.

Examples
--------
Override via environment::

    export TFMIRROR_PROVIDER_ID=hashicorp.com/qti/enos
    export TFMIRROR_LOG_LEVEL=DEBUG
    export TFMIRROR_LOCAL_ROOT=/srv/mirrors
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROVIDER_NAME = "terraform-provider-enos"
DEFAULT_PROVIDER_ID = "hashicorp.com/qti/enos"
DEFAULT_TIMEOUT_SECONDS = 15 * 60


class MirrorSettings(BaseSettings):
    """Mirror command settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TFMIRROR_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider identity
    provider_name: str = DEFAULT_PROVIDER_NAME
    provider_id: str = DEFAULT_PROVIDER_ID

    # Overall budget for one command, in seconds
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    log_level: str = "INFO"

    # Storage. When local_root is set, buckets are directories under it.
    s3_endpoint_url: str | None = None
    aws_region: str | None = None
    local_root: Path | None = None


# Module-level singleton — import as `from tfmirror.config import settings`
settings = MirrorSettings()
