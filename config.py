"""
Mediator DI - Configuration

Centralized configuration for scanning and the ambient stack.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from core.errors import ConfigError

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


@dataclass
class ScanningConfig:
    """Handler scanning configuration."""
    # Modules scanned when add_mediator is called without targets
    modules: List[str] = field(default_factory=lambda: _env_list("MEDIATOR_SCAN_MODULES"))
    include_private: bool = field(default_factory=lambda: _env_flag("MEDIATOR_SCAN_INCLUDE_PRIVATE", "false"))
    recursive: bool = field(default_factory=lambda: _env_flag("MEDIATOR_SCAN_RECURSIVE", "true"))

    # Container duplicate policy
    reject_duplicates: bool = field(default_factory=lambda: _env_flag("MEDIATOR_REJECT_DUPLICATES", "false"))


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower())

    def __post_init__(self):
        if self.level not in LogLevel.__members__:
            raise ConfigError(
                f"Unknown log level '{self.level}'",
                config_key="LOG_LEVEL",
                actual_value=self.level,
            )
        if self.format not in ("json", "console"):
            raise ConfigError(
                f"Unknown log format '{self.format}', expected 'json' or 'console'",
                config_key="LOG_FORMAT",
                actual_value=self.format,
            )


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))

    # Sub-configurations
    scanning: ScanningConfig = field(default_factory=ScanningConfig)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == Environment.DEVELOPMENT

    def setup_logging(self, force: bool = False) -> None:
        """Setup logging based on configuration."""
        from observability.logging import LoggingConfig, setup_logging

        setup_logging(
            LoggingConfig(
                level="DEBUG" if self.debug else self.logging.level,
                json_format=self.logging.format == "json",
                environment=self.env.value,
            ),
            force=force,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "scanning": {
                "modules": list(self.scanning.modules),
                "include_private": self.scanning.include_private,
                "recursive": self.scanning.recursive,
                "reject_duplicates": self.scanning.reject_duplicates,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration; the next get_config() rebuilds it."""
    global _config
    _config = None
