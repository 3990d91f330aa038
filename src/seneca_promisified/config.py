"""
Configuration system for seneca-promisified.

This module provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


# =============================================================================
# Entity Configuration
# =============================================================================

@dataclass
class EntityConfig:
    """Naming conventions and result shaping for wrapped entities."""

    # Members ending with this are operations, never persisted data
    reserved_suffix: str = "_"
    # Members starting with this are wrapper internals
    private_prefix: str = "_"

    # Wrap each record returned by list_() in its own SenecaEntity
    wrap_list_results: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.reserved_suffix:
            raise ConfigError("reserved_suffix cannot be empty")
        if not self.private_prefix:
            raise ConfigError("private_prefix cannot be empty")


# =============================================================================
# Logging Configuration
# =============================================================================

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: LogLevel = "INFO"
    format: LogFormat = "text"

    def __post_init__(self):
        self.level = self.level.upper()  # type: ignore
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.level}")
        if self.format not in ("text", "json"):
            raise ConfigError(f"Unknown log format: {self.format}")


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass
class Settings:
    """
    Master configuration for the adapter.

    This aggregates all configuration sections into a single object
    that can be loaded from environment variables, files, or constructed
    programmatically.
    """

    entity: EntityConfig = field(default_factory=EntityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "SENECA_") -> "Settings":
        """
        Load settings from environment variables.

        Example:
            SENECA_LOG_LEVEL=DEBUG
            SENECA_LOG_FORMAT=json
            SENECA_ENTITY_WRAP_LIST=false
        """
        settings = cls()

        # Entity settings
        if suffix := os.getenv(f"{prefix}ENTITY_RESERVED_SUFFIX"):
            settings.entity.reserved_suffix = suffix
        if private := os.getenv(f"{prefix}ENTITY_PRIVATE_PREFIX"):
            settings.entity.private_prefix = private
        if wrap_list := os.getenv(f"{prefix}ENTITY_WRAP_LIST"):
            settings.entity.wrap_list_results = _parse_bool(f"{prefix}ENTITY_WRAP_LIST", wrap_list)

        # Logging settings
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            settings.logging = LoggingConfig(level=level.upper(), format=settings.logging.format)  # type: ignore
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            settings.logging = LoggingConfig(level=settings.logging.level, format=log_format.lower())  # type: ignore

        return settings

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml
            except ImportError:
                raise ImportError("PyYAML is required for YAML config files: pip install pyyaml")
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            import tomllib
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise ConfigError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from a dictionary."""
        settings = cls()

        if "entity" in data:
            settings.entity = EntityConfig(**{
                k: v for k, v in data["entity"].items()
                if hasattr(settings.entity, k)
            })

        if "logging" in data:
            settings.logging = LoggingConfig(**{
                k: v for k, v in data["logging"].items()
                if hasattr(settings.logging, k)
            })

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        import dataclasses

        return dataclasses.asdict(self)


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating with defaults if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Optional[Settings] = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override specific settings sections

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if not hasattr(_global_settings, key):
            raise ConfigError(f"Unknown settings section: {key}")
        setattr(_global_settings, key, value)

    return _global_settings


def reset_settings() -> None:
    """Drop the global settings so the next get_settings() reloads them."""
    global _global_settings
    _global_settings = None


def load_env(path: Optional[str] = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = [
    "EntityConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "configure",
    "reset_settings",
    "load_env",
]
