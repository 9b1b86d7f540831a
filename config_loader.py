"""
Configuration loader utility for the GA tracking checker.
Loads configuration from config.json and provides it to all components.
"""

import json
from typing import Dict, Any, List, Optional
from pathlib import Path


class ConfigError(ValueError):
    """Configuration is valid JSON but cannot describe a run."""


class ConfigLoader:
    """Loads and provides access to application configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to the config.json file. If None, uses default location.
        """
        if config_path is None:
            # Default to config.json in the same directory as this script
            config_path = Path(__file__).parent / "config.json"

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigLoader":
        """Build a loader around an already parsed configuration."""
        loader = cls.__new__(cls)
        loader.config_path = None
        loader._config = dict(data)
        return loader

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigError(f"Configuration root must be an object: {self.config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'output.csv' or 'websocket.port')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_urls(self) -> List[str]:
        """Get the ordered list of target URLs."""
        return self._config.get('urls', [])

    def get_actions(self) -> List[Dict[str, Any]]:
        """Get the raw action list shared by all URLs."""
        return self._config.get('actions', [])

    def get_events_to_check(self) -> List[Dict[str, Any]]:
        """Get the raw expected event list shared by all URLs."""
        return self._config.get('eventsToCheck', [])

    def get_websocket_config(self) -> Dict[str, Any]:
        """Get WebSocket configuration."""
        return self._config.get('websocket', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self._config.get('logging', {})

    def get_analytics_endpoints(self) -> Dict[str, str]:
        """Get collect endpoint patterns keyed by protocol."""
        return self._config.get('analyticsEndpoints', {})

