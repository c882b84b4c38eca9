"""Centralized configuration management for docker-hipache.

Process-level defaults come from environment variables (``Config``); the
routing rules and connection addresses come from a TOML file
(``load_settings``).
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import tomli
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..exceptions import ConfigError
from ..proxy.routes import RoutingConfig, RoutingRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "docker-hipache.toml"


class Config:
    """Configuration class with all environment variables."""

    # Configuration file
    CONFIG_FILE: str = os.getenv('DOCKER_HIPACHE_CONF', str(Path.cwd() / DEFAULT_CONFIG_FILE))

    # Redis Configuration (overrides the file when set)
    REDIS_URL: Optional[str] = os.getenv('REDIS_URL')
    REDIS_TIMEOUT: float = float(os.getenv('REDIS_TIMEOUT', '5'))
    REDIS_MAX_CONNECTIONS: int = int(os.getenv('REDIS_MAX_CONNECTIONS', '10'))

    # Docker Remote API (overrides the file when set)
    DOCKER_API_URL: Optional[str] = os.getenv('DOCKER_API_URL')
    INSPECT_TIMEOUT: float = float(os.getenv('INSPECT_TIMEOUT', '10'))

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        errors = []

        if cls.REDIS_TIMEOUT <= 0:
            errors.append(f"REDIS_TIMEOUT must be positive, got {cls.REDIS_TIMEOUT}")

        if cls.INSPECT_TIMEOUT <= 0:
            errors.append(f"INSPECT_TIMEOUT must be positive, got {cls.INSPECT_TIMEOUT}")

        if cls.REDIS_MAX_CONNECTIONS < 1:
            errors.append(f"REDIS_MAX_CONNECTIONS must be at least 1, got {cls.REDIS_MAX_CONNECTIONS}")

        if errors:
            raise ConfigError(f"Configuration errors: {'; '.join(errors)}")


class Settings(BaseModel):
    """Contents of the TOML configuration file."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    redis_proto: str = Field("tcp", alias="redisproto")
    redis_addr: Optional[str] = Field(None, alias="redisaddr")
    # Older single-address form: redis = "host:port"
    redis_server: Optional[str] = Field(None, alias="redis")
    redis_url: Optional[str] = None
    docker_api: str = Field(..., alias="docker", min_length=1)
    routes: Dict[str, RoutingRule] = Field(default_factory=dict)

    @model_validator(mode='after')
    def check_redis_address(self) -> 'Settings':
        if self.redis_proto not in ("tcp", "unix"):
            raise ValueError(f"redisproto must be 'tcp' or 'unix', got {self.redis_proto!r}")
        return self

    def get_redis_url(self) -> str:
        """Translate the proto/address pair into a Redis URL."""
        if self.redis_url:
            return self.redis_url
        addr = self.redis_addr or self.redis_server or "127.0.0.1:6379"
        if self.redis_proto == "unix":
            return f"unix://{addr}"
        return f"redis://{addr}/0"

    def routing_config(self) -> RoutingConfig:
        return RoutingConfig(self.routes)


def parse_settings(data: Dict[str, Any]) -> Settings:
    """Validate an already-parsed configuration mapping.

    Raises:
        ConfigError: If required keys are missing or a route rule is invalid
    """
    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    """Load the TOML configuration file and apply environment overrides.

    Args:
        path: Path to the TOML file (defaults to Config.CONFIG_FILE)

    Returns:
        Validated settings

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    config_path = Path(path or Config.CONFIG_FILE)
    try:
        with config_path.open('rb') as f:
            data = tomli.load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse config {config_path}: {e}") from e

    if Config.REDIS_URL:
        data['redis_url'] = Config.REDIS_URL
    if Config.DOCKER_API_URL:
        data['docker'] = Config.DOCKER_API_URL

    settings = parse_settings(data)
    logger.info(
        f"Loaded config from {config_path}: docker={settings.docker_api}, "
        f"images={sorted(settings.routes)}"
    )
    return settings
