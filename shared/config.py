"""
Shared configuration management for the ACL engine.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Log level for structlog/stdlib logging")
    log_format: str = Field(default="json", description="'json' or 'console' log rendering")


class AclConfig(BaseConfig):
    """ACL engine configuration."""

    service_name: str = Field(default="acl", description="Logger and metrics namespace")

    # Permissions bootstrap
    permissions_file: Optional[str] = Field(
        default=None,
        description="JSON or YAML permissions description loaded on startup"
    )

    # Observability
    metrics_enabled: bool = Field(default=True, description="Record prometheus metrics")


def get_config(**overrides) -> AclConfig:
    """Get ACL configuration, environment first, then explicit overrides."""
    return AclConfig(**overrides)
