"""Configuration schema models using Pydantic."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_DATABASE_URL = "sqlite:///./data/site_scheduler.db"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class DatabaseConfig(BaseModel):
    """Database connection settings."""

    url: str = Field(DEFAULT_DATABASE_URL, description="SQLAlchemy database URL")
    echo: bool = Field(False, description="Echo SQL statements (debugging only)")

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("database url cannot be empty")
        return stripped


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True, "validate_default": True}

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class AppConfig(BaseModel):
    """Root configuration object for the site scheduler."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    environment: str = Field("local", min_length=1, description="Environment label for logs")
