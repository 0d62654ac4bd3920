"""Configuration management for the site scheduler."""

from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    DatabaseConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
)

__all__ = [
    "load_config",
    "AppConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
