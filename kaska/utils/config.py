"""
Configuration management for Kaska.

Handles loading and merging configuration from:
- Built-in defaults (config/default.yaml)
- An optional user configuration file
- Environment variables
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "default.yaml"

# Used when config/default.yaml is not shipped alongside the package.
BUILTIN_DEFAULTS: Dict[str, Any] = {
    "broker": {
        "host": "localhost",
        "port": 1099,
        "service_name": "KaskaSrv",
        "max_workers": 10,
    },
    "client": {
        "request_timeout_ms": 30000,
    },
    "logging": {
        "level": "INFO",
        "format": "json",
        "output": "stdout",
    },
}


class Config:
    """Configuration manager for Kaska."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, only the
                defaults and environment overrides apply.
        """
        self._config: Dict[str, Any] = {}
        self._merge_config(BUILTIN_DEFAULTS)
        self._load_default_config()

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_default_config(self) -> None:
        if DEFAULT_CONFIG_PATH.exists():
            self._load_config_file(str(DEFAULT_CONFIG_PATH))

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
        self._merge_config(file_config)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        self._config = self._deep_merge(self._config, new_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if host := os.getenv("KASKA_HOST"):
            self.set("broker.host", host)

        if port := os.getenv("KASKA_PORT"):
            self.set("broker.port", int(port))

        if service_name := os.getenv("KASKA_SERVICE_NAME"):
            self.set("broker.service_name", service_name)

        if request_timeout := os.getenv("KASKA_REQUEST_TIMEOUT_MS"):
            self.set("client.request_timeout_ms", int(request_timeout))

        if log_level := os.getenv("LOG_LEVEL"):
            self.set("logging.level", log_level)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "broker.port")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary."""
        return self._config.copy()


# Global configuration instance
_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Optional configuration file path

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
