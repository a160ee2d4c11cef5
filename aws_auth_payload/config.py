"""Settings for credential resolution, read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_PROFILE = 'default'
DEFAULT_SHARED_CREDENTIALS_FILE = os.path.join('~', '.aws', 'credentials')
DEFAULT_CONFIG_FILE = os.path.join('~', '.aws', 'config')
DEFAULT_METADATA_TIMEOUT = 1.0
DEFAULT_METADATA_ATTEMPTS = 1


def _parse_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {raw!r}")
    return value


@dataclass
class Settings:
    """Where to look for credentials."""

    profile: str = DEFAULT_PROFILE
    shared_credentials_file: str = DEFAULT_SHARED_CREDENTIALS_FILE
    config_file: str = DEFAULT_CONFIG_FILE
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    metadata_attempts: int = DEFAULT_METADATA_ATTEMPTS
    metadata_disabled: bool = False

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Load settings from ``environ`` (``os.environ`` by default).

        Raises:
            ConfigError: a numeric setting is not a valid number.
        """
        if environ is None:
            environ = os.environ
        return cls(
            profile=environ.get('AWS_PROFILE') or DEFAULT_PROFILE,
            shared_credentials_file=(
                environ.get('AWS_SHARED_CREDENTIALS_FILE') or DEFAULT_SHARED_CREDENTIALS_FILE
            ),
            config_file=environ.get('AWS_CONFIG_FILE') or DEFAULT_CONFIG_FILE,
            metadata_timeout=_parse_float(
                environ, 'AWS_METADATA_SERVICE_TIMEOUT', DEFAULT_METADATA_TIMEOUT
            ),
            metadata_attempts=_parse_int(
                environ, 'AWS_METADATA_SERVICE_NUM_ATTEMPTS', DEFAULT_METADATA_ATTEMPTS
            ),
            metadata_disabled=environ.get('AWS_EC2_METADATA_DISABLED', '').lower() == 'true',
        )
