"""Application settings using Pydantic Settings for configuration management."""

import re
from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cdnproxy.application.cache import CacheKeyScheme


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Discord CDN Proxy"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8090, validation_alias=AliasChoices("api_port", "port"))

    # Discord
    discord_token: SecretStr | None = None
    discord_api_base: str = "https://discord.com/api/v9"
    upstream_timeout_seconds: float = 30.0
    channels: str | None = None

    # Caching
    cache_key_scheme: CacheKeyScheme = CacheKeyScheme.FILE

    # Durable store (S3 / R2 compatible)
    bucket_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("bucket_name", "discord_cdn_proxy_bucket"),
    )
    s3_endpoint: str | None = None
    s3_region: str = "auto"
    s3_access_key: SecretStr | None = None
    s3_secret_key: SecretStr | None = None
    s3_prefix: str = "discord-cdn-proxy"
    s3_force_path_style: bool = True

    # Keep-warm heartbeat
    proxy_public_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("proxy_public_url", "discord_cdn_proxy_url"),
    )
    heartbeat_interval_seconds: float = 600.0

    @computed_field
    @property
    def allowed_channels(self) -> frozenset[str] | None:
        """Channel allow-list parsed from a comma or whitespace separated list."""
        if not self.channels:
            return None
        ids = [c for c in re.split(r"[\s,\[\]\"']+", self.channels) if c]
        return frozenset(ids) or None

    @property
    def token(self) -> str | None:
        return self.discord_token.get_secret_value() if self.discord_token else None

    @property
    def durable_store_enabled(self) -> bool:
        return bool(self.bucket_name)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
