"""Configuration access for the drain driver."""

from .provider import (
    ConfigProvider,
    DriverConfig,
    EnvConfigProvider,
    KubeClientConfig,
    LoggingConfig,
    PluginConfig,
    parse_duration,
)

__all__ = [
    "ConfigProvider",
    "DriverConfig",
    "EnvConfigProvider",
    "KubeClientConfig",
    "LoggingConfig",
    "PluginConfig",
    "parse_duration",
]
