"""Configuration — pydantic-settings models loaded from env and YAML."""

from algo_gateway.config.settings import (
    AppConfig,
    KMSConfig,
    MetricsConfig,
    NodeConfig,
    ServerConfig,
    ThirdPartyConfig,
)

__all__ = [
    "AppConfig",
    "KMSConfig",
    "MetricsConfig",
    "NodeConfig",
    "ServerConfig",
    "ThirdPartyConfig",
]
