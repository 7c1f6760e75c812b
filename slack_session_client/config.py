"""
Configuration management for the Slack Session Client.

This module handles loading, validation, and management of application
configuration from YAML files and environment variables. The credential
itself is not configuration; it lives in the credential store.
"""

import os
import yaml
from dataclasses import dataclass
from typing import Dict, Any, Optional
from pathlib import Path

from .exceptions import ConfigurationError


CREDENTIAL_FILE_NAME = "config.db"

DEFAULT_CONFIG_PATHS = [
    "slack-session-client.yaml",
    "~/.slack-session-client/config.yaml",
    "/etc/slack-session-client/config.yaml"
]


@dataclass
class Config:
    """Main application configuration."""
    data_dir: str = "~/.slack-session-client"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    structured_logs: bool = False
    max_retries: int = 3
    reconnect_delay: float = 5.0  # seconds between a disconnect and the reconnect attempt

    def __post_init__(self):
        """Post-initialization to expand paths."""
        self.data_dir = os.path.expanduser(self.data_dir)
        if self.log_file:
            self.log_file = os.path.expanduser(self.log_file)

    @property
    def credential_path(self) -> Path:
        """Location of the credential store file."""
        return Path(self.data_dir) / CREDENTIAL_FILE_NAME

    def validate(self) -> None:
        """Validate configuration and raise ConfigurationError if invalid."""
        errors = []

        if not self.data_dir:
            errors.append("data_dir is required")

        if not isinstance(self.max_retries, int) or isinstance(self.max_retries, bool):
            errors.append("max_retries must be an integer")
        elif self.max_retries <= 0:
            errors.append("max_retries must be positive")

        if not isinstance(self.reconnect_delay, (int, float)) or isinstance(self.reconnect_delay, bool):
            errors.append("reconnect_delay must be a number")
        elif self.reconnect_delay < 0:
            errors.append("reconnect_delay must not be negative")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level not in valid_log_levels:
            errors.append(f"log_level must be one of: {', '.join(sorted(valid_log_levels))}")

        if errors:
            raise ConfigurationError("Configuration validation failed", "; ".join(errors))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data_dir': self.data_dir,
            'log_level': self.log_level,
            'log_file': self.log_file,
            'structured_logs': self.structured_logs,
            'max_retries': self.max_retries,
            'reconnect_delay': self.reconnect_delay
        }


def _expand_env(value: Any) -> Any:
    """Expand ${VAR} references in every string of a loaded YAML tree."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    return value


def find_config_file() -> Optional[str]:
    """Return the first default config location that exists, if any."""
    for path in DEFAULT_CONFIG_PATHS:
        expanded_path = os.path.expanduser(path)
        if os.path.exists(expanded_path):
            return expanded_path
    return None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to configuration file. If None, uses default locations.

    Returns:
        Config: Loaded and validated configuration.

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid.
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()
    elif not os.path.exists(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")

    if config_path:
        try:
            with open(config_path, 'r') as f:
                yaml_data = _expand_env(yaml.safe_load(f))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {config_path}", str(e))

        if yaml_data:
            if not isinstance(yaml_data, dict):
                raise ConfigurationError(
                    f"Failed to load config file {config_path}",
                    "top level must be a mapping"
                )
            config = _merge_config_data(config, yaml_data)

    config = _load_env_overrides(config)

    config.validate()

    return config


def _merge_config_data(config: Config, data: Dict[str, Any]) -> Config:
    """Merge YAML data into configuration object."""
    if 'data_dir' in data:
        config.data_dir = os.path.expanduser(str(data['data_dir']))
    if 'log_level' in data:
        config.log_level = str(data['log_level']).upper()
    if 'log_file' in data and data['log_file']:
        config.log_file = os.path.expanduser(str(data['log_file']))
    if 'structured_logs' in data:
        config.structured_logs = bool(data['structured_logs'])

    # Session settings may be nested under "session" or given at top level
    session_data = data.get('session') or data
    if 'max_retries' in session_data:
        config.max_retries = session_data['max_retries']
    if 'reconnect_delay' in session_data:
        config.reconnect_delay = session_data['reconnect_delay']

    return config


def _load_env_overrides(config: Config) -> Config:
    """Load configuration overrides from environment variables."""

    data_dir = os.getenv('SLACK_SESSION_DATA_DIR')
    if data_dir:
        config.data_dir = os.path.expanduser(data_dir)

    log_level = os.getenv('SLACK_SESSION_LOG_LEVEL')
    if log_level:
        config.log_level = log_level.upper()

    log_file = os.getenv('SLACK_SESSION_LOG_FILE')
    if log_file:
        config.log_file = os.path.expanduser(log_file)

    max_retries = os.getenv('SLACK_SESSION_MAX_RETRIES')
    if max_retries:
        try:
            config.max_retries = int(max_retries)
        except ValueError:
            raise ConfigurationError("SLACK_SESSION_MAX_RETRIES must be an integer", max_retries)

    reconnect_delay = os.getenv('SLACK_SESSION_RECONNECT_DELAY')
    if reconnect_delay:
        try:
            config.reconnect_delay = float(reconnect_delay)
        except ValueError:
            raise ConfigurationError("SLACK_SESSION_RECONNECT_DELAY must be a number", reconnect_delay)

    return config


def create_default_config_file(path: str) -> None:
    """Create a default configuration file at the specified path."""

    default_config = {
        'data_dir': '~/.slack-session-client',
        'log_level': 'INFO',
        'log_file': '~/.slack-session-client/logs/session.log',
        'structured_logs': False,
        'session': {
            'max_retries': 3,
            'reconnect_delay': 5.0
        }
    }

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(default_config, f, default_flow_style=False, indent=2)
