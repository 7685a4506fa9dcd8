from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ConfigDict, field_validator

from chatcmd.constants import (
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_FORMAT_TARGET,
    ConfigKey,
    FormatTarget,
    LiteralMode,
)
from chatcmd.core.common.logging_utils import configure_logging_with_environment_tagging
from chatcmd.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _get_env_value(
    env: Mapping[str, str],
    name: str,
    default: Any,
    *,
    transform: Callable[[str], Any] | None = None,
) -> Any:
    """Return an environment value, optionally transformed, or the default."""
    value = env.get(name)
    if value is None or value == "":
        return default
    return transform(value) if transform is not None else value


class DispatchConfig(DomainModel):
    """Settings shared by the template compiler and the command processor."""

    model_config = ConfigDict(frozen=True)

    default_target: FormatTarget = DEFAULT_FORMAT_TARGET
    literal_mode: LiteralMode = LiteralMode.ESCAPE
    command_prefix: str | None = DEFAULT_COMMAND_PREFIX
    log_level: LogLevel = LogLevel.INFO
    log_file: str | None = None

    @field_validator("command_prefix")
    @classmethod
    def _validate_prefix(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not value.strip():
            raise ValueError("command prefix must not be empty")
        if any(c.isspace() for c in value):
            raise ValueError("command prefix cannot contain whitespace")
        return value

    @property
    def logging_level(self) -> int:
        return int(logging.getLevelName(self.log_level.value))

    def configure_logging(self) -> None:
        """Configure the logging tree from the log level and log file."""
        configure_logging_with_environment_tagging(
            level=self.logging_level, log_file=self.log_file
        )

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> DispatchConfig:
        """Create a DispatchConfig from environment variables.

        Returns:
            DispatchConfig instance
        """
        env: Mapping[str, str] = os.environ if environ is None else environ
        return cls.model_validate(_env_overrides(env))


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect the configuration values that are set in the environment."""
    values: dict[str, Any] = {
        "default_target": _get_env_value(
            env, ConfigKey.DEFAULT_TARGET.value, None, transform=str.lower
        ),
        "literal_mode": _get_env_value(
            env, ConfigKey.LITERAL_MODE.value, None, transform=str.lower
        ),
        "command_prefix": _get_env_value(env, ConfigKey.COMMAND_PREFIX.value, None),
        "log_level": _get_env_value(
            env, ConfigKey.LOG_LEVEL.value, None, transform=str.upper
        ),
        "log_file": _get_env_value(env, ConfigKey.LOG_FILE.value, None),
    }
    return {key: value for key, value in values.items() if value is not None}


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> DispatchConfig:
    """
    Load configuration from file and environment.

    Values set in the environment take precedence over the file.

    Args:
        config_path: Optional path to a YAML configuration file
        environ: Optional environment mapping, defaults to ``os.environ``

    Returns:
        DispatchConfig instance
    """
    from chatcmd.core.config.config_loader import ConfigLoader

    loader = ConfigLoader(load_env_file=environ is None)
    env = os.environ if environ is None else environ
    config_data: dict[str, Any] = {}

    if config_path:
        config_data.update(loader.load_file(config_path))

    config_data.update(_env_overrides(env))
    return DispatchConfig.model_validate(config_data)
