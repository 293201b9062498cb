"""
Configuration file support for Resume Manager.

Provides:
- Config dataclass for holding configuration values
- TOML config file loading (resume_manager.toml)
- Environment overrides (RESUME_MANAGER_DATA, RESUME_MANAGER_API_URL)
- Precedence: CLI > environment > config file > defaults
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "resume_manager.toml"
DEFAULT_DATA_FILE = "data/resume.json"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_API_URL = "http://localhost:3000"

ENV_DATA_FILE = "RESUME_MANAGER_DATA"
ENV_API_URL = "RESUME_MANAGER_API_URL"


@dataclass
class StorageConfig:
    """Where the resume document lives."""

    data_file: str = DEFAULT_DATA_FILE


@dataclass
class ServerConfig:
    """HTTP server binding."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass
class McpConfig:
    """Tool proxy settings."""

    api_url: str = DEFAULT_API_URL


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    log_file: Optional[str] = None


@dataclass
class Config:
    """Complete configuration for Resume Manager."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    mcp: McpConfig = field(default_factory=McpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config_path: Optional[Path] = None) -> "Config":
        """Create Config from a dictionary (parsed TOML)."""
        storage_data = data.get("storage", {})
        server_data = data.get("server", {})
        mcp_data = data.get("mcp", {})
        logging_data = data.get("logging", {})

        port = server_data.get("port", DEFAULT_PORT)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ConfigurationError(f"server.port must be an integer, got {port!r}")

        return cls(
            storage=StorageConfig(
                data_file=storage_data.get("data_file", DEFAULT_DATA_FILE),
            ),
            server=ServerConfig(
                host=server_data.get("host", DEFAULT_HOST),
                port=port,
            ),
            mcp=McpConfig(
                api_url=mcp_data.get("api_url", DEFAULT_API_URL),
            ),
            logging=LoggingConfig(
                level=logging_data.get("level", "WARNING"),
                log_file=logging_data.get("log_file") or None,
            ),
            config_path=config_path,
        )

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Override values from environment variables. Returns self."""
        env = os.environ if environ is None else environ

        data_file = env.get(ENV_DATA_FILE, "").strip()
        if data_file:
            logger.debug(f"Data file overridden by {ENV_DATA_FILE}")
            self.storage.data_file = data_file

        api_url = env.get(ENV_API_URL, "").strip()
        if api_url:
            logger.debug(f"API URL overridden by {ENV_API_URL}")
            self.mcp.api_url = api_url

        return self

    @property
    def data_path(self) -> Path:
        """Resolved path of the backing JSON file."""
        path = Path(self.storage.data_file).expanduser()
        if not path.is_absolute():
            base = self.config_path.parent if self.config_path else Path.cwd()
            path = base / path
        return path


def find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the configuration file.

    Search order:
    1. Explicit path if provided
    2. resume_manager.toml in current directory

    Args:
        config_path: Explicit path to config file.

    Returns:
        Path to config file, or None if not found.

    Raises:
        ConfigurationError: If an explicit path does not exist.
    """
    if config_path is not None:
        if config_path.exists():
            return config_path
        raise ConfigurationError(f"Config file not found: {config_path}")

    cwd_config = Path.cwd() / DEFAULT_CONFIG_NAME
    if cwd_config.exists():
        return cwd_config

    return None


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """
    Load configuration from a TOML file, then apply environment overrides.

    If no config file is found, defaults are used.

    Args:
        config_path: Optional explicit path to config file.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Config object with loaded or default values.

    Raises:
        ConfigurationError: If the config file exists but cannot be parsed.
    """
    config_file = find_config_file(config_path)

    if config_file is None:
        logger.debug("No config file found, using defaults")
        return Config().apply_env(environ)

    logger.debug(f"Loading config from: {config_file}")

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {config_file}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_file}: {e}")

    config = Config.from_dict(data, config_path=config_file)
    logger.info(f"Loaded config from: {config_file}")
    return config.apply_env(environ)
