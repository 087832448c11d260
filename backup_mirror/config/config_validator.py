"""Configuration validation for backup mirror."""

from typing import Dict, Any


class ConfigValidator:
    """Validates backup mirror configuration."""

    REQUIRED_KEYS = ['logFilePath']
    PATH_KEYS = ['sourceFolder', 'destinationFolder', 'logFilePath']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Only problems the service cannot work around are reported here.
        A missing or malformed timerInterval falls back to the default
        interval, and missing folders cause each run to be skipped.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping of settings")

        self._validate_structure(config)
        self._validate_paths(config)

        if 'logging' in config:
            self._validate_logging_config(config['logging'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate that required settings are present.

        Args:
            config: Configuration dictionary.

        Raises:
            ValueError: If required settings are missing.
        """
        missing_keys = [key for key in self.REQUIRED_KEYS if not config.get(key)]

        if missing_keys:
            raise ValueError(f"Missing required configuration settings: {missing_keys}")

    def _validate_paths(self, config: Dict[str, Any]) -> None:
        """Validate folder settings are strings when given."""
        for key in self.PATH_KEYS:
            value = config.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Setting {key} must be a path string, got {type(value).__name__}")

    def _validate_logging_config(self, logging_config: Dict[str, Any]) -> None:
        """Validate logging configuration.

        Args:
            logging_config: Logging configuration dictionary.

        Raises:
            ValueError: If logging configuration is invalid.
        """
        if not isinstance(logging_config, dict):
            raise ValueError("Logging configuration must be a mapping")

        level = logging_config.get('level')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ValueError(f"Logging configuration has invalid level: {level}")

        for key in ('max_size_mb', 'backup_count'):
            if key not in logging_config:
                continue
            value = logging_config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"Logging configuration has invalid {key}: {value}")

        if 'backup_count' in logging_config and not isinstance(logging_config['backup_count'], int):
            raise ValueError(f"Logging configuration backup_count must be a whole number: "
                             f"{logging_config['backup_count']}")
