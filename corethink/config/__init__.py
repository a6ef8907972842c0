"""Configuration package."""

from .core import HTTPSettings, LoggingSettings, ProviderOverride
from .settings import Settings, find_toml_config_file


__all__ = [
    "HTTPSettings",
    "LoggingSettings",
    "ProviderOverride",
    "Settings",
    "find_toml_config_file",
]
