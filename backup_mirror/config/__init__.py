"""Configuration management for backup mirror."""

from .config_manager import ConfigManager, ServiceConfig
from .config_validator import ConfigValidator

__all__ = ["ConfigManager", "ConfigValidator", "ServiceConfig"]
