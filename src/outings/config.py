"""Outing planner configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class OutingsConfig(BaseSettings):
    """Outing planner configuration loaded from environment variables.

    Every setting reads from an ``OUTINGS_``-prefixed variable with sensible
    defaults. For local development, create a .env file in the project root.
    """

    # Storage: JSON files on disk unless a record service URL is set
    store_dir: str = Field(
        default="data/outings",
        description="Directory holding one JSON file per outing record",
    )
    store_url: str = Field(
        default="",
        description="Base URL of the outing record service (empty = use store_dir)",
    )
    store_api_key: str = Field(
        default="",
        description="Bearer token for the outing record service",
    )
    store_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout against the record service",
    )

    # Retry settings for transient record service failures
    store_retry_attempts: int = Field(
        default=3,
        description="Total attempts for a record service call before giving up",
    )
    store_retry_wait_seconds: float = Field(
        default=2.0,
        description="Fixed wait between record service retries",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "OUTINGS_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: OutingsConfig | None = None


def get_config() -> OutingsConfig:
    """Get the outing planner configuration singleton.

    Returns:
        OutingsConfig: Configuration instance
    """
    global _config
    if _config is None:
        _config = OutingsConfig()
    return _config
