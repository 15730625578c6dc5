"""
Settings loaded from the environment
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_CORS_ORIGIN = "http://localhost:3000"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000
DEFAULT_RATE_LIMIT_PER_MINUTE = 30
DEFAULT_PING_INTERVAL_SECONDS = 25.0
DEFAULT_LOG_LEVEL = "INFO"


class ConfigurationError(Exception):
    """Settings are missing or malformed."""


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Attributes:
        database_url: Datastore connection string (required)
        cors_origin: The single origin allowed to call the API from a browser
        host: Interface to bind
        port: Port to listen on
        rate_limit_per_minute: Requests allowed per client address per minute
        ping_interval: Seconds between stream keep-alive events
        log_level: Root logging level name
    """

    database_url: str
    cors_origin: str = DEFAULT_CORS_ORIGIN
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE
    ping_interval: float = DEFAULT_PING_INTERVAL_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ) -> "Settings":
        """Build settings from environment variables.

        A ``.env`` file is loaded first when ``env`` is not given; variables
        already present in the process environment take precedence.

        Args:
            env: Mapping to read instead of ``os.environ``
            env_file: Explicit ``.env`` path

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If DATABASE_URL is missing or a numeric
                value is malformed
        """
        if env is None:
            if env_file is not None:
                load_dotenv(env_file)
            else:
                load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        database_url = env.get("DATABASE_URL", "").strip()
        if not database_url:
            raise ConfigurationError("Missing DATABASE_URL in environment (.env)")

        return cls(
            database_url=database_url,
            cors_origin=env.get("CORS_ORIGIN", "").strip() or DEFAULT_CORS_ORIGIN,
            host=env.get("HOST", "").strip() or DEFAULT_HOST,
            port=_int_setting(env, "PORT", DEFAULT_PORT),
            rate_limit_per_minute=_int_setting(
                env, "RATE_LIMIT_PER_MINUTE", DEFAULT_RATE_LIMIT_PER_MINUTE
            ),
            ping_interval=_float_setting(
                env, "PING_INTERVAL_SECONDS", DEFAULT_PING_INTERVAL_SECONDS
            ),
            log_level=env.get("LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL,
        )
