"""Configuration management for the backup mirror service."""

import os
import threading
import yaml
from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Tuple

from .config_validator import ConfigValidator
from ..utils.log_sink import DEFAULT_BACKUP_COUNT, DEFAULT_MAX_BYTES, LOG_FILE_NAME

DEFAULT_INTERVAL_MS = 5 * 60 * 60 * 1000
# Longest wait the platform timer accepts, in whole seconds
MAX_INTERVAL_MS = int(threading.TIMEOUT_MAX) * 1000


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for one service process, built once at startup."""
    source_folder: Optional[str]
    destination_folder: Optional[str]
    log_dir: str
    interval_ms: int = DEFAULT_INTERVAL_MS
    log_level: str = 'INFO'
    log_max_bytes: int = DEFAULT_MAX_BYTES
    log_backup_count: int = DEFAULT_BACKUP_COUNT
    config_errors: Tuple[str, ...] = ()
    config_path: Optional[str] = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def log_file(self) -> str:
        return os.path.join(self.log_dir, LOG_FILE_NAME)


class ConfigManager:
    """Manages configuration loading and validation for backup mirroring."""

    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.backup-mirror/config.yaml"),
        os.path.expanduser("~/.backup-mirror/config.yml"),
        "/etc/backup-mirror/config.yaml",
        "/etc/backup-mirror/config.yml"
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> ServiceConfig:
        """Load configuration from file.

        Returns:
            ServiceConfig built from the file.

        Raises:
            FileNotFoundError: If config file cannot be found.
            ValueError: If config file is invalid.
        """
        config_file = self._find_config_file()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file {config_file}: {e}")

        if data is None:
            data = {}
        return self.build_config(data, config_file)

    def build_config(self, data: Dict[str, Any], config_file: Optional[str] = None) -> ServiceConfig:
        """Validate raw settings and turn them into a ServiceConfig.

        Args:
            data: Settings as read from the configuration file.
            config_file: File the settings came from, if any.

        Returns:
            ServiceConfig with defaults applied.

        Raises:
            ValueError: If the settings are invalid.
        """
        self.validator.validate(data)
        # Defaults are merged into a copy so the caller's settings stay untouched
        self.config_data = dict(data)
        if isinstance(self.config_data.get('logging'), dict):
            self.config_data['logging'] = dict(self.config_data['logging'])

        # Set defaults
        self._set_defaults()

        interval_ms, interval_error = self._parse_interval(self.config_data.get('timerInterval'))
        config_errors: List[str] = []
        if interval_error:
            config_errors.append(interval_error)

        logging_config = self.get_logging_config()
        return ServiceConfig(
            source_folder=self.config_data.get('sourceFolder') or None,
            destination_folder=self.config_data.get('destinationFolder') or None,
            log_dir=os.path.expanduser(self.config_data['logFilePath']),
            interval_ms=interval_ms,
            log_level=str(logging_config['level']).upper(),
            log_max_bytes=int(logging_config['max_size_mb'] * 1024 * 1024),
            log_backup_count=logging_config['backup_count'],
            config_errors=tuple(config_errors),
            config_path=config_file
        )

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to config.yaml and customize it."
        )

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'logging': {
                'level': 'INFO',
                'max_size_mb': DEFAULT_MAX_BYTES // (1024 * 1024),
                'backup_count': DEFAULT_BACKUP_COUNT
            }
        }

        # Merge defaults with existing config
        for section, section_defaults in defaults.items():
            if section not in self.config_data:
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

    @staticmethod
    def _parse_interval(raw: Any) -> Tuple[int, Optional[str]]:
        """Parse timerInterval in milliseconds.

        Returns:
            Tuple of the interval and, when the default had to be used,
            a message explaining why.
        """
        fallback = f"using the default of {DEFAULT_INTERVAL_MS} ms (5 hours)"
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return DEFAULT_INTERVAL_MS, f"timerInterval is not configured; {fallback}"

        if isinstance(raw, bool):
            return DEFAULT_INTERVAL_MS, f"timerInterval '{raw}' is not a number; {fallback}"

        text = str(raw).strip()
        try:
            interval = int(text)
        except ValueError:
            # YAML reads values such as 18000000.0 as floats
            try:
                value = float(text)
            except ValueError:
                return DEFAULT_INTERVAL_MS, f"timerInterval '{raw}' is not a number; {fallback}"
            if not value.is_integer():
                return DEFAULT_INTERVAL_MS, f"timerInterval '{raw}' is not a whole number of milliseconds; {fallback}"
            interval = int(value)

        if interval <= 0:
            return DEFAULT_INTERVAL_MS, f"timerInterval must be positive, got {interval}; {fallback}"
        if interval > MAX_INTERVAL_MS:
            return DEFAULT_INTERVAL_MS, (f"timerInterval {interval} exceeds the maximum of "
                                         f"{MAX_INTERVAL_MS} ms; {fallback}")
        return interval, None

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.

        Returns:
            Logging configuration dictionary.
        """
        return self.config_data.get('logging', {})
