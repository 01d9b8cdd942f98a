"""
Shared configuration management for the Terminology Access Layer.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


AUTH_DISABLED = "none"

DEFAULT_ACCEPT_LANGUAGES = "en-X-900000000000509007,en-X-900000000000508004,en"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="TERMINOLOGY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Remote terminology server
    base_url: Optional[str] = Field(default=None)
    auth_url: Optional[str] = Field(default=None)
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    handler: str = Field(default="SNOMED_SNOWSTORM")
    default_languages: str = Field(default=DEFAULT_ACCEPT_LANGUAGES)

    # Timeouts and session lifetime
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    session_ttl_hours: int = Field(default=24, gt=0)

    @property
    def auth_enabled(self) -> bool:
        """Authentication is skipped when the auth URL is the 'none' sentinel."""
        return (self.auth_url or "").strip().lower() != AUTH_DISABLED

    def missing_settings(self) -> List[str]:
        """Names of required terminology settings that are not set."""
        missing = []
        if not self.base_url:
            missing.append("base_url")
        if not self.auth_url:
            missing.append("auth_url")
        elif self.auth_enabled:
            if not self.username:
                missing.append("username")
            if not self.password:
                missing.append("password")
        return missing


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
