"""
Configuration management for the XRPC explorer.

Loads/saves TOML configuration for the PDS service, history size, exports and
logging.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from atp_explorer.errors import ConfigError


class ServiceConfig(BaseModel):
    """PDS service configuration."""

    host: str = Field(default="https://bsky.social", description="PDS base URL")
    timeout_s: float = Field(default=10.0, gt=0, description="Request timeout in seconds")


class HistoryConfig(BaseModel):
    """Invocation history configuration."""

    capacity: int = Field(default=100, ge=1, description="Maximum retained invocations")


class ExportConfig(BaseModel):
    """Response export configuration."""

    directory: str = Field(default=".", description="Directory for exported responses")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_dir: str = Field(default="~/atp_explorer_logs", description="Directory for log files")


class Config(BaseModel):
    """Complete explorer configuration."""

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_path() -> Path:
    """Get default configuration file path."""
    config_home = os.getenv("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "atp_explorer" / "config.toml"


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from TOML file.

    Args:
        path: Configuration file path. If None, uses default location.

    Returns:
        Loaded configuration object.

    Raises:
        ConfigError: If the file is not valid TOML or fails validation.
    """
    if path is None:
        path = get_config_path()

    if not path.exists():
        # Return default config if file doesn't exist
        return Config()

    import tomli

    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
        return Config(**data)
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """
    Save configuration to TOML file.

    Args:
        config: Configuration object to save.
        path: Configuration file path. If None, uses default location.

    Raises:
        ConfigError: If the file cannot be written.
    """
    if path is None:
        path = get_config_path()

    import tomli_w

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            tomli_w.dump(config.model_dump(), f)
    except OSError as e:
        raise ConfigError(f"Cannot write configuration to {path}: {e}") from e


def resolve_config(
    path: Optional[Path] = None,
    host: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Config:
    """Load configuration and apply command line overrides on top of it."""
    config = load_config(path)
    if host:
        config.service.host = host
    if log_level:
        config.logging.level = log_level.upper()
    return config
