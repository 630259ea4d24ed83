"""Infrastructure layer - external services, storage, and configuration."""

from cdnproxy.infrastructure.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
