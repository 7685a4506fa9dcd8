import logging
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from chatcmd.core.common.exceptions import CommandConfigurationError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Configuration loader for dispatch settings.

    This class provides a structured interface for loading configuration data
    from a ``.env`` file and YAML configuration files.
    """

    def __init__(self, load_env_file: bool = True) -> None:
        """Initialize the configuration loader.

        Args:
            load_env_file: Whether to load a ``.env`` file into the environment
        """
        if load_env_file:
            load_dotenv()

    def load_file(self, config_file: str | Path) -> dict[str, Any]:
        """Load configuration values from a YAML file.

        Args:
            config_file: Path to the configuration file

        Returns:
            Dictionary of configuration values (empty if the file is missing)

        Raises:
            CommandConfigurationError: If the file has an unsupported format
                or does not contain a mapping
        """
        path = Path(config_file)
        if not path.exists():
            logger.warning("Configuration file not found: %s", config_file)
            return {}

        if path.suffix.lower() not in (".yaml", ".yml"):
            raise CommandConfigurationError(
                f"Unsupported configuration file format: {path.suffix}. Use YAML (.yaml/.yml).",
                details={"path": str(path)},
            )

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise CommandConfigurationError(
                f"Configuration file {path} must contain a mapping",
                details={"path": str(path)},
            )

        logger.debug("Loaded %d configuration values from %s", len(data), path)
        return data
