"""
memtsdb Configuration Management

Provides centralized configuration for the store.
Loads settings from the bundled JSON defaults, an optional custom JSON
file and environment variables.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


DEFAULT_CONFIG_PATH = Path(__file__).parent / "memtsdb_config.json"


@dataclass
class RetentionConfig:
    """Retention and eviction configuration."""
    default_retention_ms: int
    eviction_interval_s: float


@dataclass
class SchemaConfig:
    """Schema configuration."""
    time_column: str


@dataclass
class QueryConfig:
    """Query-related configuration."""
    default_fill: bool


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    log_dir: str
    console_output: bool
    format: str


class MemTSDBConfig:
    """Main memtsdb configuration manager."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to JSON config file. If None, uses default config.
        """
        self.config_path = config_path
        self._config_data = {}
        self._load_config()
        self._create_config_objects()

    def _load_config(self):
        """Load configuration from JSON file and environment variables."""
        if DEFAULT_CONFIG_PATH.exists():
            with open(DEFAULT_CONFIG_PATH, 'r') as f:
                self._config_data = json.load(f)
        else:
            raise FileNotFoundError(f"Default config file not found: {DEFAULT_CONFIG_PATH}")

        # Override with custom config if provided
        if self.config_path:
            config_path = Path(self.config_path)
            if config_path.exists():
                with open(config_path, 'r') as f:
                    custom_config = json.load(f)
                    self._merge_configs(self._config_data, custom_config)
            else:
                raise FileNotFoundError(f"Config file not found: {config_path}")

        self._load_env_overrides()

    def _merge_configs(self, default: dict, custom: dict):
        """Recursively merge custom config into default config."""
        for key, value in custom.items():
            if key in default and isinstance(default[key], dict) and isinstance(value, dict):
                self._merge_configs(default[key], value)
            else:
                default[key] = value

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables."""
        env_mappings = {
            'MEMTSDB_DEFAULT_RETENTION_MS': ('retention', 'default_retention_ms'),
            'MEMTSDB_EVICTION_INTERVAL_S': ('retention', 'eviction_interval_s'),
            'MEMTSDB_TIME_COLUMN': ('schema', 'time_column'),
            'MEMTSDB_DEFAULT_FILL': ('query', 'default_fill'),
            'MEMTSDB_LOG_LEVEL': ('logging', 'level'),
            'MEMTSDB_LOG_DIR': ('logging', 'log_dir'),
            'MEMTSDB_LOG_CONSOLE': ('logging', 'console_output'),
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                # Convert string values to appropriate types
                if key in ['default_retention_ms']:
                    value = int(value)
                elif key in ['eviction_interval_s']:
                    value = float(value)
                elif key in ['default_fill', 'console_output']:
                    value = value.lower() in ('true', '1', 'yes', 'on')

                if section not in self._config_data:
                    self._config_data[section] = {}
                self._config_data[section][key] = value

    def _create_config_objects(self):
        """Create typed configuration objects from loaded data."""
        self.retention = RetentionConfig(**self._config_data['retention'])
        self.schema = SchemaConfig(**self._config_data['schema'])
        self.query = QueryConfig(**self._config_data['query'])
        self.logging = LoggingConfig(**self._config_data['logging'])

    def get_log_dir(self) -> Optional[Path]:
        """Get the log directory, or None when file logging is disabled."""
        if not self.logging.log_dir:
            return None
        return Path(self.logging.log_dir)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return json.loads(json.dumps(self._config_data))

    def save_to_file(self, path: str):
        """Save current configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self._config_data, f, indent=2)

    def __repr__(self) -> str:
        return f"MemTSDBConfig(config_path={self.config_path})"


# Global configuration instance
_global_config: Optional[MemTSDBConfig] = None


def get_config(config_path: Optional[str] = None) -> MemTSDBConfig:
    """
    Get the global memtsdb configuration instance.

    Args:
        config_path: Path to config file. Only used on first call.

    Returns:
        MemTSDBConfig instance
    """
    global _global_config
    if _global_config is None:
        _global_config = MemTSDBConfig(config_path)
    return _global_config


def reset_config():
    """Reset the global configuration (mainly for testing)."""
    global _global_config
    _global_config = None
