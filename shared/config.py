"""
Shared configuration management for the Product Proxy.
"""

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TOKEN_URL = "https://account.demandware.com/dwsso/oauth2/access_token"
DEFAULT_OAUTH_SCOPE = "SALESFORCE_COMMERCE_API:aazi_dev sfcc.products"
DEFAULT_IMAGE_HOST = "https://www.seedheritage.com"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PRODUCT_PROXY_",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Commerce API credentials
    client_id: str = ""
    client_secret: str = ""
    short_code: str = ""
    organization_id: str = ""
    oauth_scope: str = DEFAULT_OAUTH_SCOPE
    token_url: str = DEFAULT_TOKEN_URL

    # Shaping
    image_host: str = DEFAULT_IMAGE_HOST

    # Caching
    product_cache_ttl_seconds: float = 24 * 60 * 60

    # Upstream HTTP pool
    http_timeout_seconds: float = 10.0
    http_max_connections: int = 10

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    host: str = "0.0.0.0"
    # Hosting platforms hand out the port through a bare PORT variable.
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("port", "PORT", "PRODUCT_PROXY_PORT"),
    )


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
